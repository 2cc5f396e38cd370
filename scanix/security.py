import logging

from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError, ExpiredSignatureError

from .config import ALGORITHM, SECRET_KEY

LOGGER = logging.getLogger(__name__)

# Los tokens los emite el servicio de auth; acá solo se verifican
if not SECRET_KEY:
    raise RuntimeError("SECRET_KEY no está definida en scanix/.env ni en el entorno")

oauth2_scheme = HTTPBearer()


class CurrentUser:
    def __init__(self, user_id: str, role: str, name: str = ""):
        self.id = user_id
        self.role = role
        self.name = name


def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(oauth2_scheme)) -> CurrentUser:
    if not credentials or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=401, detail="Invalid auth scheme")
    token = credentials.credentials
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except JWTError as e:
        LOGGER.warning("JWT inválido: %s", e)
        raise HTTPException(status_code=401, detail="Invalid token")
    # "sub" es lo estándar; el front viejo mandaba "id"
    sub = payload.get("sub") or payload.get("id")
    if sub is None:
        raise HTTPException(status_code=401, detail="Invalid token")
    return CurrentUser(user_id=str(sub), role=payload.get("role", "user"), name=payload.get("name", ""))
