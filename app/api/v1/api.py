from fastapi import APIRouter
from app.api.v1.routes.auth import router as auth_router
from app.api.v1.routes.users import router as users_router
from app.api.v1.routes.tours import router as tours_router
from app.api.v1.routes.bookings import router as bookings_router
from app.api.v1.routes.dependants import router as dependants_router
from app.api.v1.routes.profiles import router as profiles_router
from app.api.v1.routes.reviews import router as reviews_router
from app.api.v1.routes.payments import router as payments_router
from app.api.v1.routes.contact import router as contact_router
from app.api.v1.routes.upload import router as upload_router
from app.api.v1.routes.admin import router as admin_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth_router)
api_router.include_router(users_router)
api_router.include_router(tours_router)
api_router.include_router(bookings_router)
api_router.include_router(dependants_router)
api_router.include_router(profiles_router)
api_router.include_router(reviews_router)
api_router.include_router(payments_router)
api_router.include_router(contact_router)
api_router.include_router(upload_router)
api_router.include_router(admin_router)
