from models.base_model import Base, BaseModel
from sqlalchemy import Column, String, Text

from utils.security import hash_password, verify_password


class User(BaseModel, Base):
    __tablename__ = "users"
    username = Column(String(64), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    full_name = Column(String(255), nullable=False)
    avatar = Column(String(512), nullable=False)
    cover_image = Column(String(512), nullable=False, default="")
    password_hash = Column(String(255), nullable=False)
    # The single live refresh token; NULL once logged out or never logged in
    refresh_token = Column(Text, nullable=True)

    def __repr__(self):
        return f"<User username={self.username}>"

    @property
    def password(self):
        raise AttributeError("Password: Write-only field")

    @password.setter
    def password(self, plain: str):
        self.password_hash = hash_password(plain)

    def is_password_correct(self, plain: str) -> bool:
        return verify_password(plain, self.password_hash)
