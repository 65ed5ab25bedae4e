"""
➡️ But : Encapsuler l'accès au stockage objet S3-compatible (MinIO, Backblaze B2, AWS...).

ObjectStore expose les seules opérations dont l'application a besoin :
head / get (avec Range optionnel) / put / delete / URL GET signée.

Les erreurs boto3 sont traduites en ObjectNotFound / ObjectStoreError pour que
les services n'aient jamais à manipuler botocore directement.
"""

import io
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Optional, Tuple

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.client import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from flix.core.config import settings

NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


class ObjectStoreError(Exception):
    """Erreur upstream (statut non 2xx, timeout, connexion...)."""


class ObjectNotFound(ObjectStoreError):
    """L'objet n'existe pas dans le bucket."""


@dataclass(frozen=True)
class ObjectInfo:
    size: int
    content_type: Optional[str]


@dataclass
class ObjectBody:
    """Corps d'un GET upstream, lu au fil de l'eau."""
    stream: Any                 # botocore.response.StreamingBody
    content_type: Optional[str]

    def iter_chunks(self, chunk_size: int) -> Iterator[bytes]:
        try:
            for chunk in self.stream.iter_chunks(chunk_size):
                yield chunk
        finally:
            # fermé aussi quand le client abandonne la lecture (generator.close())
            self.stream.close()

    def read(self) -> bytes:
        try:
            return self.stream.read()
        finally:
            self.stream.close()


# -----------------------------
# Clients boto3
# -----------------------------
def make_s3_client(endpoint_url: str, *, read_timeout: Optional[int] = None):
    cfg = BotoConfig(
        signature_version="s3v4",
        s3={"addressing_style": "path"},
        connect_timeout=settings.S3_CONNECT_TIMEOUT_SECONDS,
        read_timeout=read_timeout or settings.S3_FETCH_TIMEOUT_SECONDS,
        # pas de retry implicite : une requête client = un appel upstream
        retries={"max_attempts": 1, "mode": "standard"},
    )
    return boto3.client(
        "s3",
        endpoint_url=endpoint_url,
        region_name=settings.S3_REGION,
        aws_access_key_id=settings.S3_KEY,
        aws_secret_access_key=settings.S3_SECRET,
        config=cfg,
        use_ssl=endpoint_url.startswith("https"),
    )

def make_s3_metadata():
    return make_s3_client(str(settings.S3_ENDPOINT), read_timeout=settings.S3_HEAD_TIMEOUT_SECONDS)

def make_s3_internal():
    return make_s3_client(str(settings.S3_ENDPOINT), read_timeout=settings.S3_FETCH_TIMEOUT_SECONDS)

def make_s3_public():
    return make_s3_client(str(settings.S3_PUBLIC_ENDPOINT))

def presign_get_url(s3, *, bucket: str, key: str, content_type: Optional[str], ttl: int) -> str:
    params = {"Bucket": bucket, "Key": key}
    if content_type:
        params["ResponseContentType"] = content_type
    return s3.generate_presigned_url(
        ClientMethod="get_object",
        Params=params,
        ExpiresIn=ttl,
    )


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


def _translate(error: Exception, *, op: str, key: str) -> ObjectStoreError:
    if isinstance(error, ClientError):
        code = _error_code(error)
        if code in NOT_FOUND_CODES:
            return ObjectNotFound(f"{op} {key}: object not found")
        status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        return ObjectStoreError(f"{op} {key}: upstream error {code or status}")
    return ObjectStoreError(f"{op} {key}: {error}")


# -----------------------------
# Façade
# -----------------------------
class ObjectStore:
    """
    Accès au bucket de l'application.

    - `metadata_client` : HEAD (timeout court)
    - `data_client` : GET / PUT / DELETE (timeout long)
    - `public_client` : signature des URL exposées aux clients
    Les clients sont créés à la demande via des factories (injectables en test).
    """

    def __init__(
        self,
        *,
        bucket: str = settings.S3_BUCKET,
        metadata_client_factory: Callable[[], Any] = make_s3_metadata,
        data_client_factory: Callable[[], Any] = make_s3_internal,
        public_client_factory: Callable[[], Any] = make_s3_public,
    ):
        self.bucket = bucket
        self._metadata_factory = metadata_client_factory
        self._data_factory = data_client_factory
        self._public_factory = public_client_factory
        self._clients: dict = {}

    def _client(self, name: str, factory: Callable[[], Any]):
        if name not in self._clients:
            self._clients[name] = factory()
        return self._clients[name]

    @property
    def metadata_client(self):
        return self._client("metadata", self._metadata_factory)

    @property
    def data_client(self):
        return self._client("data", self._data_factory)

    @property
    def public_client(self):
        return self._client("public", self._public_factory)

    # ---------- READ ----------

    def head(self, key: str) -> ObjectInfo:
        """Taille + type déclarés, sans transfert du corps."""
        try:
            res = self.metadata_client.head_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise _translate(e, op="HEAD", key=key) from e
        return ObjectInfo(size=int(res.get("ContentLength", 0)), content_type=res.get("ContentType"))

    def get(self, key: str, byte_range: Optional[Tuple[int, int]] = None) -> ObjectBody:
        """GET complet, ou restreint à [start, end] (inclus) si byte_range est fourni."""
        params = {"Bucket": self.bucket, "Key": key}
        if byte_range is not None:
            start, end = byte_range
            params["Range"] = f"bytes={start}-{end}"
        try:
            res = self.data_client.get_object(**params)
        except (ClientError, BotoCoreError) as e:
            raise _translate(e, op="GET", key=key) from e
        return ObjectBody(
            stream=res["Body"],
            content_type=res.get("ContentType"),
        )

    def presigned_get(self, key: str, *, content_type: Optional[str] = None, ttl: int = settings.PRESIGN_TTL_SECONDS) -> str:
        return presign_get_url(self.public_client, bucket=self.bucket, key=key, content_type=content_type, ttl=ttl)

    # ---------- WRITE ----------

    def put(self, key: str, data: bytes, *, content_type: str, metadata: Optional[dict] = None) -> None:
        try:
            self.data_client.upload_fileobj(
                Fileobj=io.BytesIO(data),
                Bucket=self.bucket,
                Key=key,
                ExtraArgs={"ContentType": content_type, "Metadata": metadata or {}},
            )
        except (ClientError, BotoCoreError, S3UploadFailedError) as e:
            raise _translate(e, op="PUT", key=key) from e

    def delete(self, key: str) -> None:
        try:
            self.data_client.delete_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise _translate(e, op="DELETE", key=key) from e

    def ping(self) -> bool:
        """Bucket joignable ? (utilisé par /health)"""
        try:
            self.metadata_client.head_bucket(Bucket=self.bucket)
        except (ClientError, BotoCoreError):
            return False
        return True
