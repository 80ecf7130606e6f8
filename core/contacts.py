# core/contacts.py
from __future__ import annotations

import re
from typing import Optional

_NAO_DIGITOS = re.compile(r"\D+")
DDI_BR = "55"


def normalize_msisdn_br(raw: Optional[str]) -> Optional[str]:
    """
    Telefone brasileiro no formato 55 + DDD + número (12 ou 13 dígitos, sem "+").
    Aceita com ou sem DDI, com "00" de discagem internacional e zero de tronco.
    Devolve None quando não dá para normalizar.
    """
    digitos = _NAO_DIGITOS.sub("", raw or "")
    if not digitos:
        return None
    if digitos.startswith("00"):
        digitos = digitos[2:]
    elif digitos.startswith("0"):
        # zero de tronco: 0 + DDD + número
        digitos = digitos[1:]
    # DDD + número sem DDI (o DDD 55 também cai aqui)
    if len(digitos) in (10, 11):
        digitos = DDI_BR + digitos
    if not digitos.startswith(DDI_BR):
        return None

    nacional = digitos[len(DDI_BR):].lstrip("0")
    if len(nacional) not in (10, 11):
        return None
    return DDI_BR + nacional


def normalize_phone(raw: Optional[str]) -> str:
    """Versão para CharField(blank=True): "" quando inválido."""
    return normalize_msisdn_br(raw) or ""
