"""MyClinic database backup: mysqldump, encrypt, upload to S3."""

__version__ = "0.1.0"
