"""Request/response schemas for auth endpoints."""

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from app.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    PATTERN_MAX_LEN,
    PATTERN_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
    USERNAME_PATTERN,
)

REMEMBER_ALIASES = AliasChoices("remember", "recordarme")


class IdentifierLogin(BaseModel):
    """Accepts {email}, {username} or {identifier} (email, username or phone)."""

    email: EmailStr | None = None
    username: str | None = Field(default=None, min_length=1, max_length=USERNAME_MAX_LEN)
    identifier: str | None = Field(default=None, min_length=3, max_length=320)
    remember: bool = Field(default=False, validation_alias=REMEMBER_ALIASES)

    @model_validator(mode="after")
    def require_identifier(self) -> "IdentifierLogin":
        if not (self.email or self.username or self.identifier):
            raise ValueError("email, username or identifier is required")
        return self

    @property
    def login_identifier(self) -> str:
        return str(self.email or self.username or self.identifier).strip()


class LoginRequest(IdentifierLogin):
    """Password login."""

    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)


class PatternLoginRequest(IdentifierLogin):
    """Pattern login (secondary factor)."""

    pattern: str = Field(..., min_length=PATTERN_MIN_LEN, max_length=PATTERN_MAX_LEN)


class SetPatternRequest(BaseModel):
    pattern: str = Field(..., min_length=PATTERN_MIN_LEN, max_length=PATTERN_MAX_LEN)


class RegisterRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    username: str = Field(
        ..., min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN, pattern=USERNAME_PATTERN
    )
    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    given_names: str | None = Field(default=None, alias="nombres", max_length=255)
    surnames: str | None = Field(default=None, alias="apellidos", max_length=255)
    phone: str | None = Field(default=None, max_length=32)
    pattern: str | None = Field(default=None, min_length=PATTERN_MIN_LEN, max_length=PATTERN_MAX_LEN)

    @field_validator("username", mode="before")
    @classmethod
    def lowercase_username(cls, v: object) -> object:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("given_names", "surnames", "phone")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v.strip()


class ForgotPasswordRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr
    redirect_to: str | None = Field(default=None, alias="redirectTo", max_length=2048)

    @field_validator("redirect_to")
    @classmethod
    def validate_redirect(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        s = v.strip().lower()
        if not (s.startswith("http://") or s.startswith("https://")):
            raise ValueError("redirectTo must be an http or https URL")
        return v.strip()


class ResetPasswordRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(..., alias="accessToken", min_length=1)
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    pattern: str | None = Field(default=None, min_length=PATTERN_MIN_LEN, max_length=PATTERN_MAX_LEN)


class SessionPayload(BaseModel):
    """Signed-in user plus access token. The refresh token only travels in the cookie."""

    model_config = ConfigDict(populate_by_name=True)

    account_id: str = Field(..., alias="usuarioId")
    profile_id: int | None = Field(default=None, alias="perfilId")
    email: str | None = None
    username: str | None = Field(default=None, alias="usuario")
    display_name: str = Field(..., alias="nombre")
    access_token: str = Field(..., alias="accessToken")
    expires_in: int | None = Field(default=None, alias="expiresIn")
    token_type: str = Field(default="bearer", alias="tokenType")


class RegisterPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    account_id: str = Field(..., alias="usuarioId")
    profile_id: int = Field(..., alias="perfilId")
    email: str | None = None
    username: str = Field(..., alias="usuario")
    requires_confirmation: bool = Field(..., alias="requiereConfirmacion")
    access_token: str | None = Field(default=None, alias="accessToken")
    expires_in: int | None = Field(default=None, alias="expiresIn")
    token_type: str | None = Field(default=None, alias="tokenType")


class CurrentUser(BaseModel):
    """Authenticated account and its profile fields, for GET /auth/me."""

    model_config = ConfigDict(populate_by_name=True)

    account_id: str = Field(..., alias="usuarioId")
    profile_id: int | None = Field(default=None, alias="perfilId")
    email: str | None = None
    username: str | None = Field(default=None, alias="usuario")
    given_names: str | None = Field(default=None, alias="nombres")
    surnames: str | None = Field(default=None, alias="apellidos")


class AccountIdPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    account_id: str = Field(..., alias="usuarioId")
