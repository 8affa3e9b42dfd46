"""JSON file backed catalog of cafes and guest photo records."""

import json
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .error_handling import translate_errors
from .exceptions import PersistenceError
from .models import Cafe, GuestPhoto, PhotoMetadata


class CatalogRepository:
    """
    Stores cafes and guest photos in a single JSON document.

    Layout: {"cafes": [...], "photos": [...]}. New photos start unapproved.
    """

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> Dict[str, List[Dict[str, Any]]]:
        if not self._path.exists():
            return {"cafes": [], "photos": []}
        with translate_errors(PersistenceError, f"Failed to read {self._path}"):
            document = json.loads(self._path.read_text(encoding="utf-8"))
        document.setdefault("cafes", [])
        document.setdefault("photos", [])
        return document

    def _write(self, document: Dict[str, List[Dict[str, Any]]]) -> None:
        with translate_errors(PersistenceError, f"Failed to write {self._path}"):
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
            tmp_path.write_text(json.dumps(document, indent=2), encoding="utf-8")
            tmp_path.replace(self._path)

    def list_cafes(self) -> List[Cafe]:
        cafes = [Cafe.model_validate(item) for item in self._read()["cafes"]]
        return sorted(cafes, key=lambda cafe: cafe.name)

    def create_cafe(self, name: str, address: str, value: Optional[int] = None) -> Cafe:
        cafe = Cafe(id=str(uuid.uuid4()), name=name, address=address, value=value)
        with self._lock:
            document = self._read()
            document["cafes"].append(cafe.model_dump(mode="json"))
            self._write(document)
        return cafe

    def create_guest_photo(
        self, image_url: str, cafe_id: str, metadata: Optional[PhotoMetadata] = None
    ) -> GuestPhoto:
        photo = GuestPhoto(
            id=str(uuid.uuid4()), image_url=image_url, cafe_id=cafe_id, metadata=metadata
        )
        with self._lock:
            document = self._read()
            if not any(cafe["id"] == cafe_id for cafe in document["cafes"]):
                raise PersistenceError(f"Unknown cafe: {cafe_id}")
            document["photos"].append(photo.model_dump(mode="json"))
            self._write(document)
        return photo

    def list_guest_photos(
        self,
        page: int = 0,
        cafe_id: Optional[str] = None,
        limit: int = 20,
        approved: Optional[bool] = True,
    ) -> List[GuestPhoto]:
        """
        Newest first, optionally filtered by cafe.

        approved=True lists the public feed, False the moderation queue and
        None every photo.
        """
        photos = [GuestPhoto.model_validate(item) for item in self._read()["photos"]]
        if cafe_id:
            photos = [photo for photo in photos if photo.cafe_id == cafe_id]
        if approved is not None:
            photos = [photo for photo in photos if photo.approved == approved]
        photos.sort(key=lambda photo: photo.created_at, reverse=True)
        return photos[page * limit : (page + 1) * limit]

    def approve_guest_photo(self, photo_id: str) -> GuestPhoto:
        with self._lock:
            document = self._read()
            for item in document["photos"]:
                if item["id"] == photo_id:
                    item["approved"] = True
                    item["updated_at"] = datetime.now(timezone.utc).isoformat()
                    self._write(document)
                    return GuestPhoto.model_validate(item)
        raise PersistenceError(f"Unknown photo: {photo_id}")

    def delete_guest_photo(self, photo_id: str) -> bool:
        with self._lock:
            document = self._read()
            remaining = [item for item in document["photos"] if item["id"] != photo_id]
            if len(remaining) == len(document["photos"]):
                return False
            document["photos"] = remaining
            self._write(document)
        return True
