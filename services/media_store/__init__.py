"""
Media Store
===========
Write-then-publish persistence for generated artifacts.

Usage:
    from services.media_store import MediaStore

    store = MediaStore(OUTPUT_DIR)
    artifact = store.save(video_bytes, produced_by="luma")
"""

from .store import MediaArtifact, MediaStore, generate_artifact_id


__all__ = [
    "MediaArtifact",
    "MediaStore",
    "generate_artifact_id",
]
