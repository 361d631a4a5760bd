"""FastAPI web application for Aurora."""

import os
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import List, Optional
import uuid
from fastapi import BackgroundTasks, Depends, FastAPI, File, Request, UploadFile, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from aurora.api.auth_models import (
    LoginRequest,
    LoginResponse,
    ProfileUpdateRequest,
    ProfileUpdateResponse,
    SignupRequest,
    SignupResponse,
    UploadResponse,
    UserOut,
)
from aurora.api.chat_models import (
    ChatDetail,
    ChatListItem,
    ChatRequest,
    ChatResponse,
    ExperienceCreateResponse,
    ExperienceOut,
    ExperienceRequest,
    MessageResponse,
    UpdatedChat,
)
from aurora.api.dependencies import (
    get_chat_orchestrator,
    get_conversation_repository,
    get_email_sender,
    get_experience_board,
    get_photo_storage,
    get_user_repository,
)
from aurora.auth.dependencies import get_current_user, get_token_service
from aurora.auth.jwt import TokenService
from aurora.auth.passwords import hash_password, verify_password
from aurora.database.conversation_repository import ConversationRepository
from aurora.database.database import init_db
from aurora.database.user_repository import UserRepository
from aurora.engine.chat import ChatOrchestrator
from aurora.engine.experiences import EMAIL_PATTERN, ExperienceBoard
from aurora.errors import AppError, BadRequestError, NotFoundError, UnauthorizedError
from aurora.integrations.email_sender import EmailSender, notify_tagged_recipient
from aurora.integrations.photo_storage import PhotoStorage
from aurora.models.user import DEFAULT_PROFILE_PHOTO, User

load_dotenv()

logger = logging.getLogger(__name__)

VERSION = "0.1.0"
UPLOAD_DIR = os.getenv("UPLOAD_DIR", "./public/uploads")
CHAT_NOT_FOUND = "Chat not found or you do not have permission."


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    Path(UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
    yield


# Initialize FastAPI app
app = FastAPI(
    title="Aurora API",
    description="Chatbot with persisted conversations, user profiles and a shared experience board",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.mount("/uploads", StaticFiles(directory=UPLOAD_DIR, check_dir=False), name="uploads")


# Error responders

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, UnauthorizedError) else None
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message}, headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Validation failed", "errors": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {type(exc).__name__}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal server error"},
    )


@app.get("/")
def root():
    return {"message": "Welcome to the Aurora API"}


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "healthy", "version": VERSION}


# Accounts

@app.post("/api/auth/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
def signup(body: SignupRequest, users: UserRepository = Depends(get_user_repository)):
    """Create an account. 409 if the email is already registered."""
    if not (body.name and body.name.strip() and body.email and body.email.strip() and body.password):
        raise BadRequestError("Name, email, and password required.")

    email = body.email.strip().lower()
    if not EMAIL_PATTERN.match(email):
        raise BadRequestError("Invalid email format.")

    now = datetime.utcnow()
    user = users.create(
        User(
            id=str(uuid.uuid4()),
            name=body.name.strip(),
            email=email,
            photo=DEFAULT_PROFILE_PHOTO,
            created_at=now,
            updated_at=now,
        ),
        password_hash=hash_password(body.password),
    )
    logger.info(f"User created: {user.id}")
    return SignupResponse(message="User created successfully", user=UserOut.from_user(user))


@app.post("/api/auth/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    users: UserRepository = Depends(get_user_repository),
    tokens: TokenService = Depends(get_token_service),
):
    """Exchange email/password for a session token."""
    if not (body.email and body.password):
        raise BadRequestError("Email and password are required.")

    credentials = users.get_credentials(body.email.strip().lower())
    if not credentials:
        raise NotFoundError("User not found")
    user, password_hash = credentials
    if not verify_password(body.password, password_hash):
        raise UnauthorizedError("Invalid credentials")

    logger.info(f"Login successful for user: {user.id}")
    return LoginResponse(token=tokens.issue(user.id), user=UserOut.from_user(user))


@app.get("/api/auth/user", response_model=UserOut)
def get_profile(current_user: User = Depends(get_current_user)):
    """Profile of the authenticated user."""
    return UserOut.from_user(current_user)


@app.put("/api/auth/user", response_model=ProfileUpdateResponse)
def update_profile(
    body: ProfileUpdateRequest,
    current_user: User = Depends(get_current_user),
    users: UserRepository = Depends(get_user_repository),
):
    """Update editable profile fields. Only fields present in the body are applied."""
    updates = {field: getattr(body, field) for field in body.model_fields_set}
    if not updates:
        raise BadRequestError("No valid update fields provided.")

    for required in ("name", "email"):
        if required in updates and not (updates[required] and updates[required].strip()):
            raise BadRequestError(f"Validation failed: {required} cannot be empty.")
    for optional in ("photo", "address", "phone"):
        if optional in updates and updates[optional] is None:
            updates[optional] = ""
    if updates.get("photo") == "":
        updates["photo"] = DEFAULT_PROFILE_PHOTO
    if "name" in updates:
        updates["name"] = updates["name"].strip()
    if "email" in updates:
        updates["email"] = updates["email"].strip().lower()
        if not EMAIL_PATTERN.match(updates["email"]):
            raise BadRequestError("Validation failed: invalid email format.")

    user = users.update_profile(current_user.id, updates)
    logger.info(f"Profile updated successfully for user: {user.id}")
    return ProfileUpdateResponse(message="Profile updated successfully", user=UserOut.from_user(user))


@app.post("/api/auth/upload", response_model=UploadResponse)
def upload_profile_photo(
    profile_image: Optional[UploadFile] = File(None, alias="profileImage"),
    current_user: User = Depends(get_current_user),
    users: UserRepository = Depends(get_user_repository),
    storage: PhotoStorage = Depends(get_photo_storage),
):
    """Upload a profile image (jpg/jpeg/png/gif/webp, up to 5MB)."""
    if profile_image is None:
        raise BadRequestError("No image file uploaded")

    photo_url = storage.store(profile_image.file, profile_image.filename)
    user = users.set_photo(current_user.id, photo_url)
    return UploadResponse(message="Upload successful", photo=user.photo)


# Chat

@app.post("/api/chatbot", response_model=ChatResponse, response_model_exclude_none=True)
def chatbot(
    body: ChatRequest,
    current_user: User = Depends(get_current_user),
    orchestrator: ChatOrchestrator = Depends(get_chat_orchestrator),
):
    """Answer a prompt, continuing chatId if given or starting a new chat."""
    result = orchestrator.handle(current_user.id, body.prompt, body.chat_id)
    if result.is_new:
        return ChatResponse(answer=result.answer, new_chat_id=result.conversation_id, title=result.title)
    return ChatResponse(
        answer=result.answer,
        updated_chat=UpdatedChat(id=result.conversation_id, last_update=result.last_activity),
    )


@app.get("/api/chats", response_model=List[ChatListItem])
def list_chats(
    current_user: User = Depends(get_current_user),
    conversations: ConversationRepository = Depends(get_conversation_repository),
):
    """The caller's chats, most recently active first."""
    return [ChatListItem.from_summary(s) for s in conversations.list_for_user(current_user.id)]


@app.get("/api/chats/{chat_id}", response_model=ChatDetail)
def get_chat(
    chat_id: str,
    current_user: User = Depends(get_current_user),
    conversations: ConversationRepository = Depends(get_conversation_repository),
):
    conversation = conversations.get(current_user.id, chat_id)
    if not conversation:
        raise NotFoundError(CHAT_NOT_FOUND)
    return ChatDetail.from_conversation(conversation)


@app.delete("/api/chats/{chat_id}", response_model=MessageResponse)
def delete_chat(
    chat_id: str,
    current_user: User = Depends(get_current_user),
    conversations: ConversationRepository = Depends(get_conversation_repository),
):
    if not conversations.delete(current_user.id, chat_id):
        raise NotFoundError(CHAT_NOT_FOUND)
    logger.info(f"Chat {chat_id} deleted for user {current_user.id}")
    return MessageResponse(message="Chat deleted successfully")


# Experiences

@app.get("/api/experiences", response_model=List[ExperienceOut])
def list_experiences(board: ExperienceBoard = Depends(get_experience_board)):
    """Latest 100 experiences, newest first (public)."""
    return [ExperienceOut.from_experience(e) for e in board.list_recent()]


@app.post("/api/experiences", response_model=ExperienceCreateResponse, status_code=status.HTTP_201_CREATED)
def create_experience(
    body: ExperienceRequest,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    board: ExperienceBoard = Depends(get_experience_board),
    sender: Optional[EmailSender] = Depends(get_email_sender),
):
    """Post an experience; a tagged recipient is emailed after the response is sent."""
    experience = board.submit(
        current_user,
        body.experience,
        tagged_email=body.tagged_email,
        message_to_recipient=body.message_to_recipient,
    )
    if experience.tagged_email:
        background_tasks.add_task(notify_tagged_recipient, sender, experience)
    return ExperienceCreateResponse(
        message="Experience added successfully!",
        experience=ExperienceOut.from_experience(experience),
    )
