import logging
import os
import uuid
from typing import BinaryIO, Optional

import boto3
from botocore.exceptions import ClientError
from dotenv import load_dotenv

from catalog.media import file_extension, is_accepted_media

logger = logging.getLogger(__name__)


class S3Client:
    """Utility class for product media stored in AWS S3"""

    def __init__(
        self,
        bucket_name: Optional[str] = None,
        s3_client=None,
        region: Optional[str] = None,
    ):
        """
        Initialize S3 client

        Args:
            bucket_name (Optional[str]): Name of the S3 bucket. Defaults to
                PRODUCT_BUCKET_NAME.
            s3_client: Preconfigured boto3 S3 client.
            region (Optional[str]): Bucket region used in public URLs.
                Defaults to AWS_REGION, then us-east-1.
        """
        load_dotenv()
        self.bucket_name = bucket_name or os.getenv("PRODUCT_BUCKET_NAME", "products")
        self.region = region or os.getenv("AWS_REGION", "us-east-1")
        self.s3_client = s3_client or boto3.client("s3", region_name=self.region)

    def public_url(self, key: str) -> str:
        return f"https://{self.bucket_name}.s3.{self.region}.amazonaws.com/{key}"

    def key_from_url(self, url: str) -> Optional[str]:
        prefix = self.public_url("")
        if not url.startswith(prefix):
            return None
        return url[len(prefix):]

    def upload_media(self, content: BinaryIO, filename: str, content_type: str) -> str:
        """
        Upload an image or video and return its public URL.

        Args:
            content (BinaryIO): File content.
            filename (str): Original file name; only its extension is kept.
            content_type (str): MIME type of the file.

        Returns:
            str: Public URL of the stored object.

        Raises:
            ValueError: If the content type is not an accepted media type.
            ClientError: If S3 rejects the upload.
        """
        if not is_accepted_media(content_type):
            raise ValueError(f"Unsupported media type: {content_type}")

        extension = file_extension(filename)
        key = uuid.uuid4().hex + (f".{extension}" if extension else "")

        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=content,
                ContentType=content_type,
            )
        except ClientError as e:
            logger.error(f"Error uploading {filename}: {e}")
            raise

        logger.info(f"Uploaded {filename} to s3://{self.bucket_name}/{key}")
        return self.public_url(key)

    def delete_media(self, url: str) -> bool:
        """
        Delete an object previously returned by upload_media.

        Args:
            url (str): Public URL of the object.

        Returns:
            bool: True if deleted, False if the URL is not in this bucket or
                S3 reported an error.
        """
        key = self.key_from_url(url)
        if not key:
            return False
        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=key)
            return True
        except ClientError as e:
            logger.error(f"Error deleting file: {e}")
            return False
