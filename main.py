import os
import math
import logging
from contextlib import contextmanager
from typing import Any, List, Optional, Union

import pydantic
from bson import ObjectId
from fastapi import FastAPI, Depends, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel
from pymongo.errors import DuplicateKeyError, PyMongoError
from starlette.middleware.sessions import SessionMiddleware

import config
import errors
import schemas
from database import (
    DatabaseUnavailable,
    create_document,
    delete_document,
    find_document,
    get_documents,
    serialize,
    update_document,
)
from passwords import hash_password, verify_password

logger = logging.getLogger(__name__)

app = FastAPI(title=config.APP_NAME)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(
    SessionMiddleware,
    secret_key=config.SESSION_SECRET,
    session_cookie="9tierras_session",
    same_site="lax",
)

errors.register_error_handlers(app)

# ---------- Utility functions ----------

def session_user(request: Request) -> Optional[dict]:
    return request.session.get('user')


def require_admin(request: Request) -> dict:
    user = session_user(request)
    if not user or user.get('role') != 'admin':
        raise errors.AuthError('No autorizado')
    return user


def parse_number(value: Any) -> Optional[Union[int, float]]:
    """Finite number from a JSON value or numeric string, else None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(number):
        return None
    return int(number) if number.is_integer() else number


def to_number(value: Any, default: Union[int, float]) -> Optional[Union[int, float]]:
    # empty values fall back to the default, like the storefront does
    if value in (None, '', 0, False):
        return default
    return parse_number(value)


def normalize_line(item: Any) -> dict:
    if not isinstance(item, dict):
        raise errors.ValidationError('Carrito inválido', errors.CHECKOUT)
    price = to_number(item.get('price'), 0)
    qty = to_number(item.get('qty'), 1)
    if price is None or qty is None:
        raise errors.ValidationError('Carrito inválido', errors.CHECKOUT)
    return {
        'product': str(item.get('product') or item.get('name') or ''),
        'price': price,
        'qty': qty,
    }


def normalize_cart(cart: Any) -> List[dict]:
    if not isinstance(cart, list) or len(cart) == 0:
        raise errors.ValidationError('Carrito vacío', errors.CHECKOUT)
    return [normalize_line(item) for item in cart]


def order_total(lines: List[dict]) -> Union[int, float]:
    return sum(line['price'] * line['qty'] for line in lines)


def record(model, data: dict, message: str, envelope=errors.ACCOUNT) -> dict:
    """Validate a document against its collection schema before storing it."""
    try:
        return model(**data).model_dump()
    except pydantic.ValidationError as e:
        logger.info('Invalid %s record: %s', model.__name__, e.errors())
        raise errors.ValidationError(message, envelope)


@contextmanager
def store_errors(message: str, envelope=errors.ACCOUNT):
    try:
        yield
    except (PyMongoError, DatabaseUnavailable) as e:
        logger.exception('Store operation failed: %s', message)
        raise errors.ServerError(message, envelope) from e


def clean(value: Optional[str]) -> str:
    return (value or '').strip()


# ---------- Models ----------

class ContactRequest(BaseModel):
    nombre: Optional[str] = None
    correo: Optional[str] = None
    mensaje: Optional[str] = None
    type: Optional[str] = None

class ReservationRequest(BaseModel):
    nombre: Optional[str] = None
    correo: Optional[str] = None
    email: Optional[str] = None
    fecha: Optional[str] = None
    hora: Optional[Union[str, int]] = None
    personas: Optional[Union[int, float, str]] = None
    mensaje: Optional[str] = None

class CheckoutRequest(BaseModel):
    cart: Any = None

class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None

class RegisterRequest(BaseModel):
    nombre: Optional[str] = None
    correo: Optional[str] = None
    password: Optional[str] = None

class BeerRequest(BaseModel):
    nombre: Optional[str] = None
    estilo: Optional[str] = None
    precio: Optional[Union[int, float, str]] = None
    img: Optional[str] = None


def beer_fields(payload: BeerRequest) -> dict:
    nombre = clean(payload.nombre)
    if not nombre or payload.precio is None:
        raise errors.ValidationError('Nombre y precio son obligatorios')
    precio = parse_number(payload.precio)
    if precio is None:
        raise errors.ValidationError('Precio inválido')
    return record(schemas.Beer, {
        'nombre': nombre,
        'estilo': clean(payload.estilo),
        'precio': precio,
        'img': clean(payload.img),
    }, 'Precio inválido')


# ---------- Routes ----------

@app.get('/api/health')
def health():
    return {'ok': True}

# Catalog
@app.get('/api/products')
def list_products() -> List[dict]:
    with store_errors('Error al obtener products'):
        beers = get_documents(schemas.BEERS, newest_first=True)
    return [
        {
            '_id': str(b['_id']),
            'name': b.get('nombre'),
            'description': b.get('estilo') or '',
            'price': b.get('precio'),
            'image': b.get('img') or '',
        }
        for b in beers
    ]

# Contact form and newsletter
@app.post('/api/contact', status_code=201)
def contact(payload: ContactRequest, response: Response):
    correo = clean(payload.correo).lower()
    if not correo:
        raise errors.ValidationError('Correo requerido.', errors.FORM)

    if payload.type == 'subscribe':
        doc = record(schemas.NewsletterSubscription, {'correo': correo}, 'Correo requerido.', errors.FORM)
        with store_errors('Error guardando contacto.', errors.FORM):
            if find_document(schemas.NEWSLETTER, {'correo': correo}):
                response.status_code = 200
                return {'success': True, 'message': 'Ya estabas suscrito.'}
            try:
                create_document(schemas.NEWSLETTER, doc)
            except DuplicateKeyError:
                response.status_code = 200
                return {'success': True, 'message': 'Ya estabas suscrito.'}
        logger.info('New newsletter subscriber %s', correo)
        return {'success': True}

    doc = record(schemas.Contact, {
        'nombre': payload.nombre,
        'correo': correo,
        'mensaje': payload.mensaje,
    }, 'Correo requerido.', errors.FORM)
    with store_errors('Error guardando contacto.', errors.FORM):
        create_document(schemas.CONTACTS, doc)
    return {'success': True}

# Reservations
@app.post('/api/reservas', status_code=201)
def create_reservation(payload: ReservationRequest):
    personas = parse_number(payload.personas)
    data = {
        'nombre': clean(payload.nombre),
        'correo': clean(payload.correo or payload.email).lower(),
        'fecha': clean(payload.fecha),
        'hora': clean(str(payload.hora) if payload.hora is not None else None),
        'personas': personas,
        'mensaje': payload.mensaje or '',
    }
    if not isinstance(personas, int) or not all(data[k] for k in ('nombre', 'correo', 'fecha', 'hora')):
        raise errors.ValidationError('Faltan campos o vienen inválidos.', errors.FORM)
    doc = record(schemas.Reservation, data, 'Faltan campos o vienen inválidos.', errors.FORM)
    with store_errors('Error guardando reserva', errors.FORM):
        create_document(schemas.RESERVATIONS, doc)
    logger.info('Reservation for %s on %s %s (%s people)', doc['correo'], doc['fecha'], doc['hora'], doc['personas'])
    return {'success': True}

# Checkout
@app.post('/api/checkout', status_code=201)
def checkout(payload: CheckoutRequest):
    lines = normalize_cart(payload.cart)
    order = record(schemas.Order, {'cart': lines, 'total': order_total(lines)}, 'Carrito inválido', errors.CHECKOUT)
    with store_errors('Error registrando compra', errors.CHECKOUT):
        order_id = create_document(schemas.ORDERS, order)
    logger.info('Order %s registered, %d lines, total %s', order_id, len(lines), order['total'])
    return {'success': True, 'orderId': order_id}

# Auth
@app.post('/api/login')
def login(payload: LoginRequest, request: Request):
    email = clean(payload.email).lower()
    if not email or not payload.password:
        raise errors.ValidationError('Correo y contraseña requeridos')
    with store_errors('Error en login'):
        user = find_document(schemas.USERS, {'email': email})
    if not user or not verify_password(payload.password, user):
        logger.warning('Failed login for %s', email)
        raise errors.AuthError('Credenciales inválidas')
    role = user.get('role', 'cliente')
    request.session['user'] = {'email': user['email'], 'role': role}
    return {'ok': True, 'email': user['email'], 'role': role}

@app.post('/api/register')
def register(payload: RegisterRequest):
    if not payload.correo or not payload.password:
        raise errors.ValidationError('Correo y contraseña requeridos')
    email = clean(payload.correo).lower()
    pwd_hash, salt = hash_password(payload.password)
    doc = record(schemas.User, {
        'nombre': clean(payload.nombre) or None,
        'email': email,
        'password_hash': pwd_hash,
        'salt': salt,
        'role': 'cliente',
    }, 'Correo inválido')
    with store_errors('Error registrando usuario'):
        if find_document(schemas.USERS, {'email': email}):
            raise errors.ConflictError('El correo ya está registrado')
        try:
            create_document(schemas.USERS, doc)
        except DuplicateKeyError:
            raise errors.ConflictError('El correo ya está registrado')
    logger.info('Registered user %s', email)
    return {'ok': True}

@app.post('/api/logout')
def logout(request: Request):
    request.session.clear()
    return {'ok': True}

# Admin catalog
@app.get('/api/admin/beers')
def admin_list_beers(admin=Depends(require_admin)):
    with store_errors('Error listando cervezas'):
        beers = get_documents(schemas.BEERS, newest_first=True)
    return {'ok': True, 'beers': [serialize(b) for b in beers]}

@app.post('/api/admin/beers', status_code=201)
def admin_create_beer(payload: BeerRequest, admin=Depends(require_admin)):
    doc = beer_fields(payload)
    with store_errors('Error creando cerveza'):
        beer_id = create_document(schemas.BEERS, doc)
        beer = find_document(schemas.BEERS, {'_id': ObjectId(beer_id)})
    logger.info('%s created beer %s', admin['email'], beer_id)
    return {'ok': True, 'beer': serialize(beer)}

@app.put('/api/admin/beers/{beer_id}')
def admin_update_beer(beer_id: str, payload: BeerRequest, admin=Depends(require_admin)):
    doc = beer_fields(payload)
    with store_errors('Error editando cerveza'):
        beer = update_document(schemas.BEERS, beer_id, doc)
    if not beer:
        raise errors.NotFoundError('Cerveza no encontrada')
    logger.info('%s updated beer %s', admin['email'], beer_id)
    return {'ok': True, 'beer': serialize(beer)}

@app.delete('/api/admin/beers/{beer_id}')
def admin_delete_beer(beer_id: str, admin=Depends(require_admin)):
    with store_errors('Error eliminando cerveza'):
        deleted = delete_document(schemas.BEERS, beer_id)
    if not deleted:
        raise errors.NotFoundError('Cerveza no encontrada')
    logger.info('%s deleted beer %s', admin['email'], beer_id)
    return {'ok': True}

# Pages
@app.get('/', include_in_schema=False)
def login_page():
    return FileResponse(os.path.join(config.PUBLIC_DIR, 'login.html'))

@app.get('/index.html', include_in_schema=False)
def catalog_page(request: Request):
    if not session_user(request):
        return RedirectResponse('/', status_code=302)
    return FileResponse(os.path.join(config.PUBLIC_DIR, 'index.html'))

# everything else under the public dir (css, js, images, other pages)
app.mount('/', StaticFiles(directory=config.PUBLIC_DIR, check_dir=False), name='public')


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
