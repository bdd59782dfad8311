"""Batch upload of a local photo directory through the media pipeline.

Usage: photoquest-batch batch-upload --directory ./photos [--recursive] [--dry-run]
"""

import os
import sys

import structlog
from dotenv import load_dotenv
from invoke import Collection, Context, Program, task

from photoquest import __version__
from photoquest.config import AppSettings
from photoquest.errors import PhotoQuestError
from photoquest.logging_config import configure_structured_logging, log_context
from photoquest.models.media import MediaAsset
from photoquest.services.image_processor import ImageProcessor, content_type_for
from photoquest.services.local_storage import LocalPhotoStore
from photoquest.services.uploader import MediaUploader

logger = structlog.get_logger()

SUPPORTED_EXTENSIONS = [".jpg", ".jpeg", ".png", ".webp", ".heic", ".heif"]


def find_images(directory: str, recursive: bool = False) -> list[str]:
    """List image files in a directory, sorted for stable output."""
    image_files = []
    if recursive:
        for root, _, files in os.walk(directory):
            for name in files:
                if os.path.splitext(name)[1].lower() in SUPPORTED_EXTENSIONS:
                    image_files.append(os.path.join(root, name))
    else:
        for name in os.listdir(directory):
            path = os.path.join(directory, name)
            if os.path.isfile(path) and os.path.splitext(name)[1].lower() in SUPPORTED_EXTENSIONS:
                image_files.append(path)
    return sorted(image_files)


def upload_file(
    file_path: str, store: LocalPhotoStore, uploader: MediaUploader, processor: ImageProcessor
) -> MediaAsset:
    """Validate, copy to local storage and store one photo remotely when possible."""
    filename = os.path.basename(file_path)
    with open(file_path, "rb") as f:
        file_data = f.read()

    processor.validate_upload(file_data, filename, content_type_for(filename))
    local_path = store.save(file_data, filename)
    outcome = uploader.store(local_path)
    return MediaAsset.from_outcome(local_path, outcome, original_name=filename, size=len(file_data))


@task
def batch_upload(c: Context, directory: str, env_file: str = ".env", recursive: bool = False, dry_run: bool = False):
    """
    Upload images from a local directory in batch.

    Args:
        c (Context): Invoke context.
        directory (str): Path to the directory containing images.
        env_file (str): Path to the environment file. Default is '.env'.
        recursive (bool): Search for images in subdirectories. Default is False.
        dry_run (bool): If True, lists files to be processed without uploading. Default is False.
    """
    if os.path.exists(env_file):
        load_dotenv(dotenv_path=env_file)
    configure_structured_logging()
    if not os.path.exists(env_file):
        logger.warning("env_file_not_found", env_file=env_file)

    if not os.path.isdir(directory):
        logger.error("directory_not_found", directory=directory)
        sys.exit(1)

    image_files = find_images(directory, recursive)
    if not image_files:
        logger.warning("no_images_found", directory=directory)
        return

    logger.info("batch_upload_started", directory=directory, files=len(image_files), dry_run=dry_run)

    if dry_run:
        print("\n--- Dry Run Mode: Files to be processed ---")
        for file_path in image_files:
            print(f"- {file_path}")
        print("--- End of Dry Run ---")
        return

    settings = AppSettings.from_env()
    store = LocalPhotoStore(settings.upload_dir)
    uploader = MediaUploader(settings.remote)
    processor = ImageProcessor(max_file_size=settings.max_upload_size)

    remote_count = 0
    fallback_count = 0
    failed_count = 0

    for file_path in image_files:
        with log_context(file=file_path) as file_logger:
            try:
                asset = upload_file(file_path, store, uploader, processor)
            except (PhotoQuestError, OSError) as e:
                file_logger.error("batch_file_failed", error=str(e))
                failed_count += 1
                continue

            file_logger.info("batch_file_stored", backend=asset.backend.value, reference=asset.canonical_reference)
            if asset.is_remote:
                remote_count += 1
            else:
                fallback_count += 1

    logger.info(
        "batch_upload_completed",
        total=len(image_files),
        remote=remote_count,
        local_fallback=fallback_count,
        failed=failed_count,
    )
    if failed_count:
        sys.exit(1)


program = Program(namespace=Collection.from_module(sys.modules[__name__]), version=__version__)
