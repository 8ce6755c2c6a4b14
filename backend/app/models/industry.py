from sqlalchemy import Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from ..database import Base


class Industry(Base):
    __tablename__ = "industries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    type = Column(String(64), nullable=False, unique=True, index=True)  # e.g. DIGITAL | SERVICE | PHYSICAL_SERVICE

    legal_requirements = relationship("LegalRequirement", back_populates="industry")
    startup_costs = relationship("StartupCost", back_populates="industry")
    tools = relationship("CommonTool", back_populates="industry")


class LegalRequirement(Base):
    __tablename__ = "legal_requirements"

    id = Column(Integer, primary_key=True, autoincrement=True)
    industry_id = Column(Integer, ForeignKey("industries.id"), nullable=False, index=True)
    requirement = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    cost_estimate = Column(String(128), nullable=True)
    location = Column(String(128), nullable=True)  # NULL applies everywhere

    industry = relationship("Industry", back_populates="legal_requirements")


class StartupCost(Base):
    __tablename__ = "avg_startup_costs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    industry_id = Column(Integer, ForeignKey("industries.id"), nullable=False, index=True)
    description = Column(String(255), nullable=False)
    cost_range_min = Column(Integer, nullable=False)
    cost_range_max = Column(Integer, nullable=False)
    location = Column(String(128), nullable=True)

    industry = relationship("Industry", back_populates="startup_costs")


class CommonTool(Base):
    __tablename__ = "common_tools"

    id = Column(Integer, primary_key=True, autoincrement=True)
    industry_id = Column(Integer, ForeignKey("industries.id"), nullable=False, index=True)
    name = Column(String(128), nullable=False)
    description = Column(Text, nullable=False)
    cost = Column(String(128), nullable=True)

    industry = relationship("Industry", back_populates="tools")
