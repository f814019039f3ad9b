"""Brazilian locale formatting and Portuguese status labels.

Used by read schemas (status labels) and by operational log lines.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation

_NON_DIGITS = re.compile(r"\D")

COTA_STATUS_LABELS: dict[str, str] = {
    "AVAILABLE": "Disponível",
    "RESERVED": "Reservada",
    "SOLD": "Vendida",
    "REMOVED": "Removida",
}

PROPOSAL_STATUS_LABELS: dict[str, str] = {
    "UNDER_REVIEW": "Em Análise",
    "PRE_APPROVED": "Pré-Aprovada",
    "APPROVED": "Aprovada",
    "TRANSFER_STARTED": "Transferência Iniciada",
    "COMPLETED": "Concluída",
    "REJECTED": "Rejeitada",
}

DOCUMENT_STATUS_LABELS: dict[str, str] = {
    "PENDING_UPLOAD": "Pendente",
    "UNDER_REVIEW": "Em Análise",
    "APPROVED": "Aprovado",
    "REJECTED": "Rejeitado",
}

PROFILE_STATUS_LABELS: dict[str, str] = {
    "INCOMPLETE": "Incompleto",
    "PENDING_REVIEW": "Em Análise",
    "APPROVED": "Aprovado",
    "REJECTED": "Rejeitado",
}

DOCUMENT_TYPE_LABELS: dict[str, str] = {
    "PF_RG": "RG",
    "PF_CPF": "CPF",
    "PF_BIRTH_CERTIFICATE": "Certidão de Nascimento",
    "PF_INCOME_TAX": "Imposto de Renda",
    "PF_EXTRA": "Documento Adicional",
    "PJ_ARTICLES_OF_INCORPORATION": "Contrato Social",
    "PJ_PROOF_OF_ADDRESS": "Comprovante de Endereço",
    "PJ_DRE": "DRE",
    "PJ_STATEMENT": "Extrato Bancário",
    "PJ_EXTRA": "Documento Adicional",
    "COTA_STATEMENT": "Extrato do Consórcio",
}


def format_currency(value: Decimal | float | int | str | None) -> str:
    """Format as Brazilian Real: 1234.5 -> "R$ 1.234,50"."""
    if value is None:
        return "R$ 0,00"
    try:
        d = Decimal(str(value))
    except InvalidOperation:
        return "R$ 0,00"
    if not d.is_finite():
        return "R$ 0,00"
    formatted = f"{abs(d):,.2f}"
    # US: 1,234.50 -> Brazilian: 1.234,50
    formatted = formatted.replace(",", "X").replace(".", ",").replace("X", ".")
    sign = "-" if d < 0 else ""
    return f"{sign}R$ {formatted}"


def format_percentage(value: Decimal | float | str | None, decimals: int = 2) -> str:
    """Format a value already in percent: 0.8512 -> "0.85%"."""
    if value is None:
        return "-"
    try:
        d = Decimal(str(value))
    except InvalidOperation:
        return "-"
    if not d.is_finite():
        return "-"
    return f"{d:.{decimals}f}%"


def format_cpf(cpf: str) -> str:
    """000.000.000-00"""
    digits = _NON_DIGITS.sub("", cpf)
    return re.sub(r"^(\d{3})(\d{3})(\d{3})(\d{2})$", r"\1.\2.\3-\4", digits)


def format_cnpj(cnpj: str) -> str:
    """00.000.000/0000-00"""
    digits = _NON_DIGITS.sub("", cnpj)
    return re.sub(r"^(\d{2})(\d{3})(\d{3})(\d{4})(\d{2})$", r"\1.\2.\3/\4-\5", digits)


def format_phone(phone: str) -> str:
    """(00) 00000-0000 for mobiles, (00) 0000-0000 for landlines."""
    digits = _NON_DIGITS.sub("", phone)
    if len(digits) == 11:
        return re.sub(r"^(\d{2})(\d{5})(\d{4})$", r"(\1) \2-\3", digits)
    return re.sub(r"^(\d{2})(\d{4})(\d{4})$", r"(\1) \2-\3", digits)


def format_cep(cep: str) -> str:
    """00000-000"""
    digits = _NON_DIGITS.sub("", cep)
    return re.sub(r"^(\d{5})(\d{3})$", r"\1-\2", digits)


def label_for(labels: dict[str, str], value: str) -> str:
    """Look up a Portuguese label, falling back to the raw value."""
    return labels.get(value, value)
