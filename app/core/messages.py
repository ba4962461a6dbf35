"""Human-readable messages per locale for every envelope code."""

from app.core.errors import ErrorCode

SUCCESS_MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        "AUTH.LOGIN_OK": "Signed in",
        "AUTH.REFRESH_OK": "Session restored",
        "AUTH.LOGOUT_OK": "Signed out",
        "AUTH.REGISTER_OK": "User registered and signed in",
        "AUTH.REGISTER_PENDING": "User registered. Check your email to confirm the account.",
        "AUTH.RECOVERY_EMAIL_SENT": "If the email exists, a recovery link was sent.",
        "AUTH.RESET_OK": "Password updated",
        "AUTH.PATTERN_SET": "Pattern saved",
        "AUTH.ME_OK": "Current user",
        "HEALTH.OK": "Service is healthy",
    },
    "es": {
        "AUTH.LOGIN_OK": "Sesión iniciada",
        "AUTH.REFRESH_OK": "Sesión rehidratada",
        "AUTH.LOGOUT_OK": "Sesión cerrada",
        "AUTH.REGISTER_OK": "Usuario registrado y sesión iniciada",
        "AUTH.REGISTER_PENDING": "Usuario registrado. Revisa tu correo para confirmar la cuenta.",
        "AUTH.RECOVERY_EMAIL_SENT": "Si el correo existe, se envió un enlace de recuperación.",
        "AUTH.RESET_OK": "Contraseña actualizada",
        "AUTH.PATTERN_SET": "Patrón guardado",
        "AUTH.ME_OK": "Usuario actual",
        "HEALTH.OK": "Servicio operativo",
    },
}

ERROR_MESSAGES: dict[str, dict[ErrorCode, str]] = {
    "en": {
        ErrorCode.INVALID_CREDENTIALS: "Invalid username or password",
        ErrorCode.MISSING_TOKEN: "Missing bearer token",
        ErrorCode.INVALID_TOKEN: "Invalid or expired token",
        ErrorCode.NO_REFRESH_COOKIE: "No session cookie",
        ErrorCode.REFRESH_FAILED: "Could not restore the session",
        ErrorCode.EMAIL_IN_USE: "Email is already registered",
        ErrorCode.SIGNUP_FAILED: "Could not register the user",
        ErrorCode.RESET_FAILED: "Could not update the password",
        ErrorCode.UPSTREAM_TIMEOUT: "Authentication service timed out, try again",
        ErrorCode.UPSTREAM_UNAVAILABLE: "Authentication service unavailable",
        ErrorCode.DUPLICATE_USERNAME: "Username is already taken",
        ErrorCode.DUPLICATE_EMAIL: "Email is already registered",
        ErrorCode.DUPLICATE_PHONE: "Phone is already registered",
        ErrorCode.DUPLICATE_AUTH_USER: "This account already has a profile",
        ErrorCode.DUPLICATE: "Duplicate profile",
        ErrorCode.SELECT_FAILED: "Could not resolve the user",
        ErrorCode.INSERT_FAILED: "Could not create the profile",
        ErrorCode.BAD_REQUEST: "Invalid request",
        ErrorCode.UNSUPPORTED_CONTENT_TYPE: "Content-Type must be application/json",
        ErrorCode.METHOD_NOT_ALLOWED: "Method not allowed",
        ErrorCode.NOT_FOUND: "Not found",
        ErrorCode.INTERNAL_ERROR: "Unexpected error",
    },
    "es": {
        ErrorCode.INVALID_CREDENTIALS: "Usuario o contraseña inválidos",
        ErrorCode.MISSING_TOKEN: "Sin token",
        ErrorCode.INVALID_TOKEN: "Token inválido",
        ErrorCode.NO_REFRESH_COOKIE: "No hay cookie de sesión",
        ErrorCode.REFRESH_FAILED: "No se pudo rehidratar sesión",
        ErrorCode.EMAIL_IN_USE: "El correo ya está registrado",
        ErrorCode.SIGNUP_FAILED: "No se pudo registrar",
        ErrorCode.RESET_FAILED: "No se pudo actualizar la contraseña",
        ErrorCode.UPSTREAM_TIMEOUT: "El servicio de autenticación no respondió a tiempo, reintenta",
        ErrorCode.UPSTREAM_UNAVAILABLE: "Servicio de autenticación no disponible",
        ErrorCode.DUPLICATE_USERNAME: "Ese usuario ya está en uso",
        ErrorCode.DUPLICATE_EMAIL: "El correo ya está registrado",
        ErrorCode.DUPLICATE_PHONE: "El teléfono ya está registrado",
        ErrorCode.DUPLICATE_AUTH_USER: "Ese usuario de autenticación ya tiene un perfil",
        ErrorCode.DUPLICATE: "Perfil duplicado",
        ErrorCode.SELECT_FAILED: "No se pudo resolver el usuario",
        ErrorCode.INSERT_FAILED: "No se pudo crear el perfil",
        ErrorCode.BAD_REQUEST: "Solicitud inválida",
        ErrorCode.UNSUPPORTED_CONTENT_TYPE: "Content-Type debe ser application/json",
        ErrorCode.METHOD_NOT_ALLOWED: "Método no permitido",
        ErrorCode.NOT_FOUND: "No encontrado",
        ErrorCode.INTERNAL_ERROR: "Error inesperado",
    },
}


def success_message(code: str, locale: str) -> str:
    table = SUCCESS_MESSAGES.get(locale, SUCCESS_MESSAGES["en"])
    return table.get(code, code)


def error_message(code: ErrorCode, locale: str) -> str:
    table = ERROR_MESSAGES.get(locale, ERROR_MESSAGES["en"])
    return table.get(code, code.value)
