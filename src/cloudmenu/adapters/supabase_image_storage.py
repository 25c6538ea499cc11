"""Supabase Storage bucket for rehosted images."""

from dataclasses import dataclass

from supabase import Client

from cloudmenu.services.image_rehost import ImageStorage


@dataclass
class SupabaseImageStorage(ImageStorage):
    """Uploads images to a public Supabase Storage bucket."""

    client: Client
    bucket: str

    def upload(self, path: str, content: bytes, content_type: str) -> str:
        """Upload an object and return its public URL."""
        bucket = self.client.storage.from_(self.bucket)
        bucket.upload(
            path=path,
            file=content,
            file_options={"content-type": content_type, "upsert": "false"},
        )
        return bucket.get_public_url(path)
