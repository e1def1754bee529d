"""Role profile model definitions, one per account."""

from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from attendance_api.database import Base
from attendance_api.models.user import User


class Admin(Base):
    """Administrative profile."""
    __tablename__ = "admins"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    admin_level = Column(String, default="system")

    user = relationship(User, back_populates="admin")


class Staff(Base):
    """Staff member profile."""
    __tablename__ = "staff"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    employee_id = Column(String, unique=True, nullable=False)
    department = Column(String)
    position = Column(String)

    user = relationship(User, back_populates="staff")


class Student(Base):
    """Student profile; login for students is resolved through this record."""
    __tablename__ = "students"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    student_id = Column(String, unique=True, nullable=False)
    class_name = Column("class", String)
    section = Column(String)
    year = Column(String)

    user = relationship(User, back_populates="student")


PROFILE_MODELS = {
    "admin": Admin,
    "staff": Staff,
    "student": Student,
}
