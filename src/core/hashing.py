"""Hash de direcciones para el endpoint de perfiles.

El servicio identifica cada perfil por el SHA-256 del email normalizado
(strip + lower). Normalizar antes de hashear garantiza que variantes de
mayúsculas/espacios apunten al mismo recurso.
"""

from __future__ import annotations

import hashlib


def normalize_email(email: str) -> str:
    return email.strip().lower()


def hash_email(email: str) -> str:
    """Devuelve el hex digest (64 caracteres) del email normalizado."""

    return hashlib.sha256(normalize_email(email).encode("utf-8")).hexdigest()
