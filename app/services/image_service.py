import io
import logging
import os
import shutil
from datetime import datetime

from PIL import Image
from werkzeug.utils import secure_filename

from app.extensions import db
from app.models import FishPhoto

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.bmp'}
THUMBNAIL_SIZE = (200, 200)


def validate_image_format(filename):
    if not filename or "." not in filename:
        return False

    ext = os.path.splitext(filename)[1].lower()

    return ext in ALLOWED_EXTENSIONS


def fit_within(width, height, max_width, max_height):
    """Scale (width, height) down to fit the box, keeping the aspect ratio."""
    aspect_ratio = width / height

    if width > max_width:
        width = max_width
        height = width / aspect_ratio

    if height > max_height:
        height = max_height
        width = height * aspect_ratio

    return max(1, int(round(width))), max(1, int(round(height)))


class ImageService:
    def __init__(self, storage_dir=None):
        self.storage_dir = storage_dir

    def init_app(self, app):
        self.storage_dir = app.config['UPLOAD_FOLDER']
        os.makedirs(self.storage_dir, exist_ok=True)

    def save_image(self, source, caption=None, category="General", is_treatment_photo=False,
                   treatment_plan_id=None, description=None, fish_id=None, now=None):
        """
        Copies `source` (an uploaded FileStorage or a path on disk) into the
        storage folder and records it in the photo table.
        """
        now = now or datetime.now()

        if isinstance(source, (str, os.PathLike)):
            if not os.path.exists(source):
                raise FileNotFoundError(f"The source image file was not found: {source}")
            original_name = os.path.basename(source)
        else:
            original_name = source.filename

        file_name = f"{now:%Y%m%d_%H%M%S}_{secure_filename(original_name)}"
        target_path = os.path.join(self.storage_dir, file_name)

        if isinstance(source, (str, os.PathLike)):
            shutil.copyfile(source, target_path)
        else:
            source.save(target_path)

        photo = FishPhoto(
            caption=caption,
            description=description,
            date_taken=now,
            file_path=self.storage_dir,
            file_name=file_name,
            category=category or "General",
            is_treatment_photo=is_treatment_photo,
            treatment_plan_id=treatment_plan_id,
            fish_id=fish_id
        )
        db.session.add(photo)
        db.session.commit()
        logger.info("Saved photo %s as %s", photo.id, file_name)
        return photo

    def load_image(self, photo):
        full_path = photo.full_path
        if not os.path.exists(full_path):
            return None

        try:
            with Image.open(full_path) as img:
                img.load()
                return img.copy()
        except Exception as e:
            logger.warning("Could not load image %s: %s", full_path, e)
            return None

    def resize_image(self, image, max_width, max_height):
        size = fit_within(image.width, image.height, max_width, max_height)
        return image.resize(size)

    def thumbnail_bytes(self, photo, max_width=THUMBNAIL_SIZE[0], max_height=THUMBNAIL_SIZE[1]):
        image = self.load_image(photo)
        if image is None:
            return None

        resized = self.resize_image(image, max_width, max_height)
        if resized.mode not in ("RGB", "RGBA", "L"):
            resized = resized.convert("RGBA")

        buffer = io.BytesIO()
        resized.save(buffer, format="PNG")
        return buffer.getvalue()

    def delete_image(self, photo):
        photo_id = photo.id
        full_path = photo.full_path

        try:
            db.session.delete(photo)
            db.session.commit()
        except Exception:
            db.session.rollback()
            logger.exception("Deleting photo %s failed", photo_id)
            return False

        # the record is gone, a file that cannot be removed is only logged
        try:
            if os.path.exists(full_path):
                os.remove(full_path)
        except OSError:
            logger.exception("Photo %s deleted but %s was left behind", photo_id, full_path)
        return True
