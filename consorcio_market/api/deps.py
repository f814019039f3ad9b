"""FastAPI dependencies resolving the services built in the app lifespan."""

from __future__ import annotations

from fastapi import Request

from consorcio_market.documents.review import DocumentReviewService
from consorcio_market.profiles.service import ProfileService
from consorcio_market.quotas.editing import CotaEditor
from consorcio_market.rates.recalculation import RateRecalculator
from consorcio_market.workflow.engine import ProposalWorkflow


def get_workflow(request: Request) -> ProposalWorkflow:
    return request.app.state.workflow


def get_document_service(request: Request) -> DocumentReviewService:
    return request.app.state.documents


def get_profile_service(request: Request) -> ProfileService:
    return request.app.state.profiles


def get_cota_editor(request: Request) -> CotaEditor:
    return request.app.state.cota_editor


def get_recalculator(request: Request) -> RateRecalculator:
    return request.app.state.recalculator
