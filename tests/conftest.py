"""
Pytest configuration and shared fixtures.

The environment is set before anything from `flix` is imported so that the
module-level settings / engine pick up the test values.
"""
import io
import os
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["S3_BUCKET"] = "media"
os.environ.pop("CACHE_URL", None)

import pytest
from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import ClientError
from botocore.response import StreamingBody
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

from flix.api.v1.dependencies import get_cache, get_object_store
from flix.core.cache import MemoryCacheBackend, TypedCache
from flix.core.config import jwt_settings
from flix.core.rate_limit import limiter
from flix.db.models.refresh_tokens import RefreshToken
from flix.db.models.users import User
from flix.db.models.videos import Video
from flix.db.session import build_engine, get_session, init_db
from flix.main import app
from flix.security.password import hash_password
from flix.security.tokens import create_access_token, new_jti
from flix.utils.s3 import ObjectStore

BUCKET = "media"


def client_error(code: str, status: int, operation: str) -> ClientError:
    return ClientError(
        {"Error": {"Code": code, "Message": code}, "ResponseMetadata": {"HTTPStatusCode": status}},
        operation,
    )


class FakeS3Client:
    """In-memory stand-in for a boto3 S3 client (only the calls ObjectStore makes)."""

    def __init__(self):
        self.objects: Dict[str, Tuple[bytes, Optional[str]]] = {}
        self.calls: List[Tuple[str, str, Optional[str]]] = []
        self._failures: List[Tuple[str, str, Exception]] = []

    # ---------- test helpers ----------

    def add(self, key: str, data: bytes, content_type: Optional[str] = None) -> None:
        self.objects[key] = (data, content_type)

    def fail(self, op: str, exc: Exception, *, prefix: str = "") -> None:
        """Make every `op` call on a key starting with `prefix` raise `exc`."""
        self._failures.append((op, prefix, exc))

    def fail_upstream(self, op: str, *, code: str = "InternalError", status: int = 500, prefix: str = "") -> None:
        self.fail(op, client_error(code, status, op), prefix=prefix)

    def fail_upload(self, *, prefix: str = "") -> None:
        self.fail("upload_fileobj", S3UploadFailedError(f"Failed to upload {prefix}*: InternalError"), prefix=prefix)

    def ops(self, op: str) -> List[Tuple[str, str, Optional[str]]]:
        return [c for c in self.calls if c[0] == op]

    def _check(self, op: str, key: str) -> None:
        for failing_op, prefix, exc in self._failures:
            if failing_op == op and key.startswith(prefix):
                raise exc

    # ---------- boto3 API ----------

    def head_object(self, *, Bucket, Key):
        self.calls.append(("head_object", Key, None))
        self._check("head_object", Key)
        if Key not in self.objects:
            raise client_error("404", 404, "HeadObject")
        data, content_type = self.objects[Key]
        res = {"ContentLength": len(data)}
        if content_type:
            res["ContentType"] = content_type
        return res

    def get_object(self, *, Bucket, Key, Range=None):
        self.calls.append(("get_object", Key, Range))
        self._check("get_object", Key)
        if Key not in self.objects:
            raise client_error("NoSuchKey", 404, "GetObject")
        data, content_type = self.objects[Key]
        res = {}
        if Range:
            start, end = Range[len("bytes="):].split("-")
            start, end = int(start), int(end)
            res["ContentRange"] = f"bytes {start}-{end}/{len(data)}"
            data = data[start:end + 1]
        res["Body"] = StreamingBody(io.BytesIO(data), len(data))
        res["ContentLength"] = len(data)
        if content_type:
            res["ContentType"] = content_type
        return res

    def upload_fileobj(self, *, Fileobj, Bucket, Key, ExtraArgs=None):
        self.calls.append(("upload_fileobj", Key, None))
        self._check("upload_fileobj", Key)
        self.objects[Key] = (Fileobj.read(), (ExtraArgs or {}).get("ContentType"))

    def delete_object(self, *, Bucket, Key):
        self.calls.append(("delete_object", Key, None))
        self._check("delete_object", Key)
        self.objects.pop(Key, None)

    def generate_presigned_url(self, *, ClientMethod, Params, ExpiresIn):
        self.calls.append(("generate_presigned_url", Params["Key"], None))
        return f"https://s3.test/{Params['Bucket']}/{Params['Key']}?X-Amz-Expires={ExpiresIn}"

    def head_bucket(self, *, Bucket):
        self.calls.append(("head_bucket", Bucket, None))
        self._check("head_bucket", "")
        return {}



# -----------------------------
# DB
# -----------------------------
@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    init_db(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


# -----------------------------
# Storage / cache
# -----------------------------
@pytest.fixture
def s3():
    return FakeS3Client()


@pytest.fixture
def store(s3):
    return ObjectStore(
        bucket=BUCKET,
        metadata_client_factory=lambda: s3,
        data_client_factory=lambda: s3,
        public_client_factory=lambda: s3,
    )


@pytest.fixture
def cache():
    return TypedCache(MemoryCacheBackend())


# -----------------------------
# App
# -----------------------------
@pytest.fixture
def client(engine, store, cache):
    def override_get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_object_store] = lambda: store
    app.dependency_overrides[get_cache] = lambda: cache
    limiter.reset()

    # sans context manager : pas d'événement startup (pas de init_db sur la base par défaut)
    yield TestClient(app)

    app.dependency_overrides.clear()


# -----------------------------
# Users / tokens
# -----------------------------
@pytest.fixture
def make_user(session):
    def _make(username: str, password: str = "secret123", *, admin: bool = False) -> User:
        user = User(username=username, hashed_password=hash_password(password), admin=admin)
        session.add(user)
        session.commit()
        session.refresh(user)
        return user
    return _make


def bearer(session: Session, user: User) -> Dict[str, str]:
    # un access token n'est valide que si sa session (refresh) existe en base
    jti = new_jti()
    session.add(RefreshToken(jti=jti, user_id=user.id, expires_at=datetime.now(timezone.utc) + jwt_settings.refresh_ttl))
    session.commit()
    token = create_access_token(user_id=user.id, username=user.username, session_id=jti, settings=jwt_settings)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(session, make_user):
    return bearer(session, make_user("admin", admin=True))


@pytest.fixture
def user_headers(session, make_user):
    return bearer(session, make_user("viewer"))


# -----------------------------
# Videos
# -----------------------------
@pytest.fixture
def make_video(session):
    def _make(**overrides) -> Video:
        fields = {
            "title": "Big Buck Bunny",
            "genre": "Animation",
            "description": "A giant rabbit",
            "duration": 596,
            "year": 2008,
            "is_featured": False,
            "video_key": "videos/2024-01-01/bunny.mp4",
            "thumbnail_key": "thumbnails/2024-01-01/bunny.jpg",
        }
        fields.update(overrides)
        video = Video(**fields)
        session.add(video)
        session.commit()
        session.refresh(video)
        return video
    return _make


# -----------------------------
# Sample files (magic bytes reconnus par filetype)
# -----------------------------
@pytest.fixture
def jpeg_bytes():
    return b"\xff\xd8\xff\xe0" + b"\x00" * 256


@pytest.fixture
def png_bytes():
    return b"\x89PNG\r\n\x1a\n" + b"\x00" * 256


@pytest.fixture
def mp4_bytes():
    # boîte ftyp de 24 octets : major mp42, compatibles mp42 + isom
    return b"\x00\x00\x00\x18ftypmp42\x00\x00\x00\x00mp42isom" + b"\x00" * 1024
