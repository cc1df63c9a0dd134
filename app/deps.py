# app/deps.py
from fastapi import Request

from app.config import Settings
from app.services.email_service import EmailService
from app.services.store import DocumentStore


def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_mailer(request: Request) -> EmailService:
    return request.app.state.mailer
