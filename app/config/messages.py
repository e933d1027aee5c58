"""
User-facing error messages.
The front end shows `detail` verbatim, so every message here is written for the
end user (Spanish). Technical details are only appended outside production,
see format_api_error.
"""

from typing import Any, Optional

from app.config.settings import settings

MESSAGES = {
    "AUTH": {
        "INVALID_CREDENTIALS": "Credenciales inválidas. Por favor verifica tu correo y contraseña.",
        "SESSION_EXPIRED": "Tu sesión ha expirado. Por favor inicia sesión nuevamente.",
        "REGISTRATION_FAILED": "No se pudo completar el registro. Por favor intenta de nuevo.",
        "UNAUTHORIZED": "No tienes permiso para acceder a este recurso.",
        "EMAIL_IN_USE": "Este correo electrónico ya está en uso. Por favor usa otro o inicia sesión.",
        "SERVICE_KEY_MISSING": "La clave de servicio no está configurada.",
    },
    "API": {
        "NETWORK_ERROR": "Error de conexión. Por favor verifica tu conexión a internet.",
        "SERVER_ERROR": "Error en el servidor. Por favor intenta más tarde.",
        "REQUEST_FAILED": "La solicitud no pudo ser procesada. Por favor intenta nuevamente.",
        "TIMEOUT": "La solicitud ha tardado demasiado tiempo. Por favor intenta más tarde.",
    },
    "PRODUCTS": {
        "NOT_FOUND": "Producto no encontrado.",
        "FETCH_ERROR": "No se pudieron cargar los productos. Por favor intenta más tarde.",
        "UNAVAILABLE": "Este producto no está disponible en este momento.",
        "INVALID_DATA": "Datos de producto inválidos.",
        "NO_UPDATES": "No se proporcionaron datos para actualizar.",
        "IMAGE_TOO_LARGE": "El archivo es demasiado grande (máximo {max_mb}MB).",
        "IMAGE_NOT_IMAGE": "El archivo debe ser una imagen.",
        "IMAGE_UPLOAD_FAILED": "No se pudo subir la imagen del producto.",
    },
    "CART": {
        "ADD_ERROR": "No se pudo agregar el producto al carrito.",
        "REMOVE_ERROR": "No se pudo eliminar el producto del carrito.",
        "UPDATE_ERROR": "No se pudo actualizar el carrito.",
        "EMPTY_ERROR": "Tu carrito está vacío.",
        "FETCH_ERROR": "No se pudieron cargar los productos del carrito.",
        "MAX_PER_USER": "Solo puedes agregar {max_per_user} unidad(es) de este producto a tu carrito.",
        "OUT_OF_STOCK": "No hay stock suficiente de este producto.",
    },
    "QR": {
        "SCAN_FAILED": "Error al escanear el código QR. Por favor intenta nuevamente.",
        "INVALID_CODE": "Código QR no válido o ya utilizado.",
        "INVALID_FORMAT": "Formato de QR inválido. El contenido no es JSON válido.",
        "MISSING_PRODUCT": "QR inválido: no contiene ID de producto.",
        "NOT_FOUND": "Código QR no encontrado.",
    },
    "ORDERS": {
        "NOT_FOUND": "Pedido no encontrado.",
        "CREATE_FAILED": "Error al procesar el pedido en la base de datos.",
        "INSUFFICIENT_STOCK": "Error: Stock insuficiente para uno de los productos.",
        "INSUFFICIENT_COINS": "No tienes monedas suficientes para completar este pedido.",
        "INVALID_RESPONSE": "Error: Respuesta inválida desde la base de datos.",
        "STATUS_UPDATE_FAILED": "Error al actualizar el estado del pedido.",
    },
    "PROFILE": {
        "UPDATE_FAILED": "No se pudo actualizar el perfil. Por favor intenta más tarde.",
        "FETCH_ERROR": "Error al cargar datos del perfil.",
        "NOT_FOUND": "Usuario no encontrado.",
    },
    "GENERAL": {
        "UNEXPECTED_ERROR": "Ha ocurrido un error inesperado. Por favor intenta nuevamente.",
        "FORM_VALIDATION": "Por favor verifica los campos del formulario e intenta nuevamente.",
        "PERMISSION_DENIED": "Permiso denegado. Verifica los permisos necesarios.",
    },
}


def message(key: str, **kwargs) -> str:
    """Look up a message by dotted key, e.g. message("CART.MAX_PER_USER", max_per_user=1)"""
    area, name = key.split(".", 1)
    text = MESSAGES[area][name]
    return text.format(**kwargs) if kwargs else text


def format_api_error(error: Any, user_message: Optional[str] = None) -> str:
    """User message, plus technical details when not running in production"""
    text = user_message or MESSAGES["API"]["REQUEST_FAILED"]
    if settings.is_production or error is None:
        return text
    details = getattr(error, "message", None) or str(error)
    return f"{text} (Detalles: {details})"
