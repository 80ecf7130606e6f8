# core/validation.py
from __future__ import annotations

import re
from typing import Optional

from core.exceptions import RegraNegocio

_NON_DIGITS = re.compile(r"\D+")


def somente_digitos(raw: Optional[str]) -> str:
    return _NON_DIGITS.sub("", raw or "")


def _digito_cnpj(base: str, pesos: list[int]) -> int:
    soma = sum(int(d) * p for d, p in zip(base, pesos))
    resto = soma % 11
    return 0 if resto < 2 else 11 - resto


def cnpj_valido(raw: Optional[str]) -> bool:
    """
    Valida CNPJ pelos dígitos verificadores.
    Aceita com ou sem máscara; rejeita sequências repetidas (00000000000000 etc.).
    """
    cnpj = somente_digitos(raw)
    if len(cnpj) != 14 or len(set(cnpj)) == 1:
        return False

    pesos1 = [5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2]
    pesos2 = [6] + pesos1
    d1 = _digito_cnpj(cnpj[:12], pesos1)
    d2 = _digito_cnpj(cnpj[:12] + str(d1), pesos2)
    return cnpj[-2:] == f"{d1}{d2}"


def formatar_cnpj(raw: Optional[str]) -> str:
    cnpj = somente_digitos(raw)
    if len(cnpj) != 14:
        return raw or ""
    return f"{cnpj[:2]}.{cnpj[2:5]}.{cnpj[5:8]}/{cnpj[8:12]}-{cnpj[12:]}"


def formatar_cep(raw: Optional[str]) -> str:
    cep = somente_digitos(raw)
    if len(cep) != 8:
        return raw or ""
    return f"{cep[:5]}-{cep[5:]}"


def id_param(valor, campo: str) -> Optional[int]:
    """Id vindo de querystring/corpo: None quando ausente, RegraNegocio (400) quando não numérico."""
    if valor is None or valor == "":
        return None
    try:
        n = int(valor)
    except (TypeError, ValueError):
        raise RegraNegocio(f"Parâmetro inválido: {campo}")
    if n <= 0:
        raise RegraNegocio(f"Parâmetro inválido: {campo}")
    return n
