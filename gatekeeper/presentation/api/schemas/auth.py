from pydantic import BaseModel


class LoginRequest(BaseModel):
    # Format is checked at registration only; login just looks the address up.
    email: str
    password: str
