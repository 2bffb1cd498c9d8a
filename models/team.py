import uuid
from sqlalchemy import Column, String, DateTime, Text, JSON
import datetime
from database import Base


class TeamDB(Base):
    __tablename__ = "teams"

    team_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    team_name = Column(String(100), nullable=False)
    description = Column(Text, default="")
    administrator = Column(String(36), nullable=False)
    # Порядок вступления, по нему выбирается преемник администратора
    members = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, default=datetime.datetime.utcnow)

    def __repr__(self):
        return f"<Team(team_id={self.team_id}, team_name='{self.team_name}')>"
