from pydantic import BaseModel, Field

# ---------- Inputs ----------

class SignUpIn(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    # bcrypt ne prend en compte que 72 octets
    password: str = Field(min_length=6, max_length=72)

class SignInIn(BaseModel):
    username: str
    password: str

class LogoutIn(BaseModel):
    refresh_token: str


# ---------- Outputs ----------

class UserOut(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    username: str
    admin: bool

class TokenPairOut(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int  # secondes (durée de l'access token)
    user: UserOut
