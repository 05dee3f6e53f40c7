from typing import Optional
from passlib.context import CryptContext
from core.entities.user import User
from core.repositories.user_repository import UserRepository


pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)

def register_user(repo: UserRepository, email: str, password: str,
                  full_name: Optional[str] = None, is_admin: bool = False) -> User:
    email = email.strip().lower()
    if len(password) < 6:
        raise ValueError("Password must be at least 6 characters")
    existing = repo.get_by_email(email)
    if existing is not None:
        raise ValueError("User with this email already exists")
    password_hash = get_password_hash(password)
    full_name = full_name.strip() if full_name and full_name.strip() else None
    return repo.create_user(email=email, password_hash=password_hash, is_admin=is_admin, full_name=full_name)

def authenticate_user(repo: UserRepository, email: str, password: str) -> Optional[User]:
    email = email.strip().lower()
    user = repo.get_by_email(email)
    if not user:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user
