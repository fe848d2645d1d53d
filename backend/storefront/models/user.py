from sqlalchemy import JSON, Column, DateTime, Integer, String, func
from sqlalchemy.orm import relationship

from storefront.db import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(256), nullable=False, default="")
    email = Column(String(320), unique=True, index=True, nullable=False)  # stored lowercase
    password = Column(String(128), nullable=False)  # bcrypt hash
    permissions = Column(JSON, nullable=False, default=list)
    reset_token = Column(String(128), nullable=True, index=True)
    reset_token_expiry = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    cart = relationship(
        "CartItem", back_populates="user", cascade="all, delete-orphan", order_by="CartItem.id"
    )

    def __repr__(self):
        return f"<User id={self.id} email={self.email}>"
