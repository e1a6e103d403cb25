"""
Module 'signature': point d'entrée public.
Canonicalisation/empreinte PayFast et endpoint de signature côté serveur.
"""

from .codec import SignatureCodec, SpaceEncoding, SIGNATURE_FIELD, stringify

__all__ = [
    "SignatureCodec",
    "SpaceEncoding",
    "SIGNATURE_FIELD",
    "stringify",
]
