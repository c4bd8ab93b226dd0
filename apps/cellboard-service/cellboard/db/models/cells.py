from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, ForeignKey, Index, CheckConstraint, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from .base import Base, now_utc

CELL_ROLES = ("leader", "co_leader", "member")
_ROLE_ORDER = {role: i for i, role in enumerate(CELL_ROLES)}


class Cell(Base):
    __tablename__ = 'cells'
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False, default='')
    year = Column(Integer, nullable=False)
    active = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    memberships = relationship(
        "CellMembership",
        back_populates="cell",
        cascade="all, delete-orphan",
        order_by="CellMembership.position",
    )

    __table_args__ = (
        Index('ix_cells_year', 'year'),
    )

    def _holder(self, role: str):
        for m in self.memberships:
            if m.role == role:
                return m.person
        return None

    @property
    def leader(self):
        return self._holder('leader')

    @property
    def co_leader(self):
        return self._holder('co_leader')

    @property
    def members(self):
        """Everyone in the cell, leadership first (the leader is listed here too)."""
        ordered = sorted(self.memberships, key=lambda m: _ROLE_ORDER.get(m.role, len(_ROLE_ORDER)))
        return [m.person for m in ordered]


class CellMembership(Base):
    __tablename__ = 'cell_memberships'
    cell_id = Column(Integer, ForeignKey('cells.id', ondelete='CASCADE'), primary_key=True)
    person_id = Column(Integer, ForeignKey('people.id'), primary_key=True)
    year = Column(Integer, nullable=False)  # copied from the cell so one-cell-per-year is a plain unique key
    role = Column(String, nullable=False)  # 'leader'|'co_leader'|'member'
    position = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=now_utc)

    cell = relationship("Cell", back_populates="memberships")
    person = relationship("Person")

    __table_args__ = (
        UniqueConstraint('person_id', 'year', name='uq_cell_memberships_person_year'),
        Index('idx_cell_memberships_cell_id', 'cell_id'),
        CheckConstraint("role in ('leader','co_leader','member')", name='ck_cell_memberships_role'),
    )
