"""Brazilian document id decoders — CPF and CNPJ."""

from consorcio_market.decoders.cpf_cnpj import clean_digits, validate_cnpj, validate_cpf

__all__ = [
    "clean_digits",
    "validate_cpf",
    "validate_cnpj",
]
