"""
Erreurs du proxy de streaming. Levées par les services, traduites en réponses HTTP par le router :

    VideoNotFound        -> 404
    InvalidContent       -> 400
    MalformedRange       -> 416 (sans Content-Range)
    RangeNotSatisfiable  -> 416 + Content-Range: bytes */<taille>
    UpstreamNotFound     -> 404
    UpstreamError        -> 500
"""


class StreamError(Exception):
    pass


class VideoNotFound(StreamError, LookupError):
    def __init__(self, video_id: int):
        self.video_id = video_id
        super().__init__(f"Video {video_id} not found")


class InvalidContent(StreamError):
    """Clé stockée absente ou impossible à normaliser."""


class MalformedRange(StreamError):
    pass


class RangeNotSatisfiable(StreamError):
    def __init__(self, total_length: int):
        self.total_length = total_length
        super().__init__(f"Range not satisfiable (length {total_length})")


class UpstreamNotFound(StreamError):
    """La ligne existe en base mais l'objet manque dans le bucket."""


class UpstreamError(StreamError):
    pass
