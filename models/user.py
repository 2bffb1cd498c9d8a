import enum
import uuid
from sqlalchemy import Column, Integer, String, DateTime, JSON
import datetime
from database import Base


class UserStatus(str, enum.Enum):
    """Статусы присутствия"""
    ONLINE = "online"
    BUSY = "busy"
    OFFLINE = "offline"


class UserDB(Base):
    __tablename__ = "users"

    user_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    username = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)
    token_version = Column(Integer, nullable=False, default=0)
    role = Column(String(100), nullable=True)
    status = Column(String(20), nullable=False, default=UserStatus.OFFLINE.value)
    image = Column(String, nullable=True)
    phone = Column(String(50), nullable=True)
    created_at = Column(DateTime, default=datetime.datetime.utcnow)

    # Слабые ссылки, согласованность поддерживает crud
    team_id = Column(String(36), nullable=True, index=True)
    join_date = Column(DateTime, nullable=True)
    task_id = Column(String(64), nullable=True)
    tasks = Column(JSON, nullable=True)

    # GitLab
    gitlab_access_token = Column(String(255), nullable=True)
    gitlab_user_id = Column(Integer, nullable=True, index=True)

    def __repr__(self):
        return f"<User(user_id={self.user_id}, username='{self.username}')>"
