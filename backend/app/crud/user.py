"""用户 CRUD 操作"""
from sqlmodel import Session, select

from app.core.security import get_password_hash, verify_password
from app.models import User


def normalize_email(email: str) -> str:
    return email.strip().lower()


def get_by_email(*, session: Session, email: str) -> User | None:
    """根据邮箱查询用户"""
    statement = select(User).where(User.email == normalize_email(email))
    return session.exec(statement).first()


def create(*, session: Session, email: str, password: str) -> User:
    """创建新用户，只保存密码哈希"""
    user = User(email=normalize_email(email), hashed_password=get_password_hash(password))
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def authenticate(*, session: Session, email: str, password: str) -> User | None:
    """校验邮箱与密码，失败返回 None"""
    user = get_by_email(session=session, email=email)
    if not user or not user.hashed_password:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user
