"""Request/response schemas for the user account endpoints."""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

# Min/max lengths shared by the API schemas and the create_user script.
USERNAME_MIN_LEN = 3
USERNAME_MAX_LEN = 255
PASSWORD_MIN_LEN = 6
# bcrypt ignores anything past 72 bytes.
PASSWORD_MAX_LEN = 72
NAME_MAX_LEN = 255
ADDRESS_MAX_LEN = 1024


class LoginRequest(BaseModel):
    """Credentials for login."""

    username: str = Field(..., min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN)
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)


class RegisterRequest(BaseModel):
    """New account details; the password must be entered twice."""

    model_config = ConfigDict(populate_by_name=True)

    username: str = Field(..., min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN)
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    confirm_password: str = Field(..., alias="confirmPassword")
    first_name: str = Field(..., alias="firstname", min_length=1, max_length=NAME_MAX_LEN)
    last_name: str = Field(..., alias="lastname", min_length=1, max_length=NAME_MAX_LEN)
    email: EmailStr
    address: str = Field(..., min_length=1, max_length=ADDRESS_MAX_LEN)

    @model_validator(mode="after")
    def passwords_match(self) -> "RegisterRequest":
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class UpdateProfileRequest(BaseModel):
    """Editable profile fields. username identifies the account being edited."""

    model_config = ConfigDict(populate_by_name=True)

    username: str = Field(..., min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN)
    first_name: str = Field(..., alias="firstname", min_length=1, max_length=NAME_MAX_LEN)
    last_name: str = Field(..., alias="lastname", min_length=1, max_length=NAME_MAX_LEN)
    address: str = Field(..., min_length=1, max_length=ADDRESS_MAX_LEN)


class UserClaims(BaseModel):
    """Public view of a user, identical to the claims carried in the token."""

    role: str
    username: str
    fname: str
    lname: str
    email: str
    address: str


class LoginResponse(BaseModel):
    token: str = Field(..., description="JWT bearer token")
    user: UserClaims


class MessageResponse(BaseModel):
    msg: str


class ProtectedResponse(BaseModel):
    user: UserClaims


class UpdateProfileResponse(BaseModel):
    msg: str
    token: str = Field(..., description="Reissued JWT bearer token")
    user: UserClaims
