import time


def _timestamp_ms() -> int:
    return int(time.time() * 1000)


def clean_filename(filename: str | None) -> str:
    return (filename or "file").replace(" ", "_")


def profile_pic_key(user_id, filename: str | None, timestamp: int | None = None) -> str:
    ts = _timestamp_ms() if timestamp is None else timestamp
    return f"profile-pics/{user_id}_{ts}_{clean_filename(filename)}"


def product_image_key(user_id, product_id, index: int) -> str:
    return f"seller/{user_id}/{product_id}/images/{index}.jpg"


def verification_doc_key(user_id, filename: str | None, timestamp: int | None = None) -> str:
    ts = _timestamp_ms() if timestamp is None else timestamp
    return f"verification-docs/{user_id}/{ts}_{clean_filename(filename)}"
