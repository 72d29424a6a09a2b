import logging
import os
import uuid
from datetime import datetime
from typing import Optional

from flota.core.config import settings

logger = logging.getLogger(__name__)

TIPOS_PERMITIDOS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "application/pdf": ".pdf",
}


def guardar_comprobante(
    contenido: bytes,
    nombre_original: str,
    tipo_mime: Optional[str],
    carpeta: str,
) -> dict:
    """Guarda un comprobante bajo UPLOAD_DIR/<carpeta> y devuelve sus metadatos"""
    if tipo_mime not in TIPOS_PERMITIDOS:
        raise ValueError("Tipo de archivo no permitido. Solo se permiten imágenes (JPEG, PNG, GIF, WebP) y PDF.")
    if not contenido:
        raise ValueError("El comprobante está vacío")
    if len(contenido) > settings.MAX_UPLOAD_BYTES:
        raise ValueError("El comprobante excede el tamaño máximo permitido (5MB)")

    destino = os.path.join(settings.UPLOAD_DIR, carpeta)
    os.makedirs(destino, exist_ok=True)

    nombre = f"{uuid.uuid4().hex}{TIPOS_PERMITIDOS[tipo_mime]}"
    ruta = os.path.join(destino, nombre)
    with open(ruta, "wb") as f:
        f.write(contenido)

    logger.info(f"Comprobante guardado en {ruta} ({len(contenido)} bytes)")
    return {
        "url": f"/uploads/{carpeta}/{nombre}",
        "nombre_archivo_original": nombre_original,
        "tipo_mime": tipo_mime,
        "tamano": len(contenido),
        "fecha_subida": datetime.now(),
    }
