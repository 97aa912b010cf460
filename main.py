from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from shared.config import settings, configure_logging
from shared.errors import register_exception_handlers
from services.access_control.controllers.access_service import router as access_router
from services.user_management.controllers.auth_service import router as auth_router
from services.user_management.controllers.school_service import router as school_router
from services.user_management.controllers.profile_service import router as profile_router
from services.user_management.controllers.directory_service import router as directory_router
from services.academic.controllers.academic_service import router as academic_router
from services.timetable.controllers.timetable_service import router as timetable_router
from services.attendance_management_system.controllers.attendance_service import router as attendance_router
from services.finance.controllers.fee_service import router as fee_router
from services.edge_functions.controllers.functions_service import router as functions_router

configure_logging(settings)

app = FastAPI(title="Edufar School Backend")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.get("/")
def health_check():
    return {"status": "Edufar School Backend is running"}


app.include_router(auth_router)
app.include_router(access_router)
app.include_router(school_router)
app.include_router(profile_router)
app.include_router(directory_router)
app.include_router(academic_router)
app.include_router(timetable_router)
app.include_router(attendance_router)
app.include_router(fee_router)
app.include_router(functions_router)
