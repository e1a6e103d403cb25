"""
Parsing des jeux de paramètres plats {str: str} (JSON ou form-urlencoded), ordre préservé.
Utilisé par l'endpoint de signature et par le webhook ITN.
"""
import json
from typing import Any, Dict, Optional
from urllib.parse import parse_qsl

from gateway.errors import InvalidParameterValue, MalformedRequest
from gateway.signature.codec import stringify


def _unique_pairs(pairs):
    out = {}
    for key, value in pairs:
        if key in out:
            raise MalformedRequest(f"Clé dupliquée: {key!r}")
        out[key] = value
    return out


def flatten(data: Any) -> Dict[str, str]:
    """Objet JSON déjà décodé -> dict plat de textes; sinon MalformedRequest."""
    if not isinstance(data, dict):
        raise MalformedRequest("Objet JSON attendu")
    params: Dict[str, str] = {}
    for key, value in data.items():
        try:
            text_value = stringify(value)
        except InvalidParameterValue:
            raise MalformedRequest(f"Valeur imbriquée pour {key!r}")
        params[str(key)] = "" if text_value is None else text_value
    return params


def parse_json(text: str) -> Dict[str, str]:
    try:
        data = json.loads(text or "null", object_pairs_hook=_unique_pairs)
    except ValueError:
        raise MalformedRequest("JSON invalide")
    return flatten(data)


def parse_form(text: str) -> Dict[str, str]:
    params: Dict[str, str] = {}
    for key, value in parse_qsl(text, keep_blank_values=True):
        if key in params:
            raise MalformedRequest(f"Clé dupliquée: {key!r}")
        params[key] = value
    return params


def parse_payload(body: bytes, content_type: Optional[str]) -> Dict[str, str]:
    """
    Parse le corps en dictionnaire plat ordonné {str: str}.
    - JSON si content-type application/json, sinon form-urlencoded
    - Les valeurs vides sont conservées (elles sont exclues plus tard de la signature)
    - Clés dupliquées, JSON non objet ou valeurs imbriquées => MalformedRequest
    """
    ctype = (content_type or "").split(";")[0].strip().lower()
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError:
        raise MalformedRequest("Payload non UTF-8")
    if ctype == "application/json":
        return parse_json(text)
    return parse_form(text)
