from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class CategoriaRow(Base):
    __tablename__ = "categorias"

    id: Mapped[str] = mapped_column(String(120), primary_key=True)
    nombre: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    # Catalog order is part of the snapshot.
    posicion: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class ProductoRow(Base):
    __tablename__ = "productos"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    # No FK constraint: a restored base may reference categories it does not list.
    categoria_id: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    codigo: Mapped[str] = mapped_column(String(40), nullable=False, default="", index=True)
    nombre: Mapped[str] = mapped_column(Text, nullable=False, default="")

    valor_nominal: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    suscripcion: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    cuota17: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    cuota8mas: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    derecho_ingreso: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)

    posicion: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class PreferenciasRow(Base):
    __tablename__ = "preferencias"

    clave: Mapped[str] = mapped_column(String(40), primary_key=True)
    # JSON text of the settings snapshot
    valor: Mapped[str] = mapped_column(Text, nullable=False, default="{}")
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
