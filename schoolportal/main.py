from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from schoolportal.api.v1.announcements.router import router as announcements_router
from schoolportal.api.v1.attendance.router import router as attendance_router
from schoolportal.api.v1.classes.classes_router import router as classes_router
from schoolportal.api.v1.dashboard.router import router as dashboard_router
from schoolportal.api.v1.events.router import router as events_router
from schoolportal.api.v1.schools.router import router as schools_router
from schoolportal.api.v1.students.router import router as students_router
from schoolportal.api.v1.subjects.router import router as subjects_router
from schoolportal.api.v1.teachers.router import router as teachers_router
from schoolportal.api.v1.terms.router import router as terms_router
from schoolportal.core.app_logger import setup_logging


def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(title="School Portal Backend")

    # CORS: allow the portal frontend to call this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(terms_router)
    app.include_router(schools_router)
    app.include_router(teachers_router)
    app.include_router(classes_router)
    app.include_router(students_router)
    app.include_router(subjects_router)
    app.include_router(attendance_router)
    app.include_router(announcements_router)
    app.include_router(events_router)
    app.include_router(dashboard_router)

    return app


app = create_app()
