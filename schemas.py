"""
Database Schemas

MongoDB collection schemas for the 9 Tierras shop, as Pydantic models.
Every record is validated against its model right before it is inserted.

Collection names follow the storefront's existing database:
- Beer -> "beers"
- User -> "users"
- Order -> "carts"
- Contact -> "contacts"
- NewsletterSubscription -> "newsletter"
- Reservation -> "reservas"
"""

from pydantic import BaseModel, Field, EmailStr
from typing import List, Literal, Optional

BEERS = "beers"
USERS = "users"
ORDERS = "carts"
CONTACTS = "contacts"
NEWSLETTER = "newsletter"
RESERVATIONS = "reservas"

COLLECTIONS = [BEERS, ORDERS, CONTACTS, NEWSLETTER, RESERVATIONS, USERS]


class Beer(BaseModel):
    """
    Beers collection schema
    Collection name: "beers"
    """
    nombre: str = Field(..., min_length=1, description="Beer name")
    estilo: str = Field("", description="Style, shown as the product description")
    precio: float = Field(..., ge=0, description="Price in pesos")
    img: str = Field("", description="Image URL")


class User(BaseModel):
    """
    Users collection schema
    Collection name: "users"
    """
    nombre: Optional[str] = Field(None, description="Display name")
    email: EmailStr = Field(..., description="Email address (unique, lowercase)")
    password_hash: str = Field(..., description="Password hash (internal)")
    salt: str = Field(..., description="Password salt (internal)")
    role: Literal["cliente", "admin"] = Field("cliente", description="cliente | admin")


class OrderLine(BaseModel):
    product: str = ""
    price: float = 0
    qty: float = 1


class Order(BaseModel):
    """
    Orders collection schema (one per checkout, never updated)
    Collection name: "carts"
    """
    cart: List[OrderLine]
    total: float


class Contact(BaseModel):
    nombre: Optional[str] = None
    correo: str = Field(..., min_length=1)
    mensaje: Optional[str] = None


class NewsletterSubscription(BaseModel):
    correo: str = Field(..., min_length=1, description="Subscriber email (unique)")


class Reservation(BaseModel):
    """
    Reservations collection schema
    Collection name: "reservas"
    """
    nombre: str = Field(..., min_length=1)
    correo: str = Field(..., min_length=1)
    fecha: str = Field(..., min_length=1)
    hora: str = Field(..., min_length=1)
    personas: int = Field(..., ge=1, description="Party size")
    mensaje: str = ""
