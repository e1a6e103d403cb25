"""
Canonicalisation et signature des paramètres PayFast.

Chaîne signée: `k1=v1&k2=v2[&passphrase=...]`, clés dans l'ordre de construction
(l'API REST utilise l'ordre alphabétique: sort_keys=True), valeurs vides ignorées,
valeurs trimées puis encodées façon URI component. Empreinte: MD5 hexadécimal
minuscule, imposé par le processeur.
"""
import hashlib
import hmac
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping
from urllib.parse import quote

from gateway.errors import InvalidParameterValue

# Caractères laissés tels quels par un encodage "URI component"
_UNRESERVED = "-_.!~*'()"

SIGNATURE_FIELD = "signature"


class SpaceEncoding(str, Enum):
    PERCENT = "percent"  # espace -> %20
    PLUS = "plus"        # espace -> +

    @classmethod
    def parse(cls, value: "str | SpaceEncoding") -> "SpaceEncoding":
        if isinstance(value, SpaceEncoding):
            return value
        v = (value or "").strip().lower()
        if v in ("percent", "%20"):
            return cls.PERCENT
        if v in ("plus", "+"):
            return cls.PLUS
        raise ValueError(f"Encodage d'espace inconnu: {value!r} (attendu: percent|plus)")


def stringify(value: Any) -> str | None:
    """
    Convertit une valeur primitive en texte signable.
    - None => None (champ absent)
    - bool => "true"/"false"
    - str/int/float/Decimal => str(value)
    Toute autre valeur (dict, liste, objet) => InvalidParameterValue.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    raise InvalidParameterValue(f"Valeur non primitive: {type(value).__name__}")


class SignatureCodec:
    def __init__(self, passphrase: str = "", space_encoding: "str | SpaceEncoding" = SpaceEncoding.PERCENT):
        self._passphrase = (passphrase or "").strip()
        self.space_encoding = SpaceEncoding.parse(space_encoding)

    def __repr__(self) -> str:
        # Ne jamais exposer la passphrase
        return f"SignatureCodec(space_encoding={self.space_encoding.value}, passphrase={'set' if self._passphrase else 'unset'})"

    def encode(self, value: str) -> str:
        encoded = quote(value, safe=_UNRESERVED)
        if self.space_encoding is SpaceEncoding.PLUS:
            encoded = encoded.replace("%20", "+")
        return encoded

    def canonical_string(self, params: Mapping[str, Any], *, sort_keys: bool = False, exclude: tuple = ()) -> str:
        keys = sorted(params) if sort_keys else list(params)
        parts = []
        for key in keys:
            if key in exclude:
                continue
            text = stringify(params[key])
            if text is None or text == "":
                continue
            parts.append(f"{key}={self.encode(text.strip())}")
        out = "&".join(parts)
        if self._passphrase:
            sep = "&" if out else ""
            out += f"{sep}passphrase={self.encode(self._passphrase)}"
        return out

    def sign(self, params: Mapping[str, Any], *, sort_keys: bool = False) -> str:
        """Empreinte hexadécimale (32 caractères) du jeu de paramètres, champ `signature` exclu."""
        payload = self.canonical_string(params, sort_keys=sort_keys, exclude=(SIGNATURE_FIELD,))
        return hashlib.md5(payload.encode("utf-8")).hexdigest()

    def verify(self, params: Mapping[str, Any], claimed_signature: Any, *, sort_keys: bool = False) -> bool:
        """Recalcule et compare en temps constant. Ne journalise ni secret ni empreinte."""
        if not isinstance(claimed_signature, str) or not claimed_signature:
            return False
        expected = self.sign(params, sort_keys=sort_keys)
        return hmac.compare_digest(expected.encode("ascii"), claimed_signature.strip().lower().encode("utf-8"))
