import os

from dotenv import load_dotenv


class Config:
    def __init__(self, env_file=None):
        """
        Initialize configuration by loading environment variables and setting default attributes.

        Loads environment variables from the provided .env file path when `env_file` is given; otherwise loads from the default environment. After loading, sets the database, download directory, HTTP and logging attributes using environment values with sensible defaults.
        Parameters:
            env_file (str | None): Optional path to a .env file to load environment variables from. If omitted, the default environment or default .env discovery is used.
        """
        if env_file:
            load_dotenv(env_file)
        else:
            load_dotenv()

        # Base directory; each show gets a sub-directory named after its title
        self.PODCAST_DOWNLOAD_DIRECTORY = os.getenv("PODCAST_DOWNLOAD_DIRECTORY", ".")

        # Database configuration
        self.DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./podcasts.db")
        self.DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "5"))
        self.DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "10"))
        self.DB_ECHO = os.getenv("DB_ECHO", "false").lower() == "true"

        # HTTP configuration for feed and enclosure fetches
        self.PODCAST_DOWNLOAD_TIMEOUT = int(os.getenv("PODCAST_DOWNLOAD_TIMEOUT", "300"))
        if self.PODCAST_DOWNLOAD_TIMEOUT <= 0:
            raise ValueError(
                f"PODCAST_DOWNLOAD_TIMEOUT must be positive, got {self.PODCAST_DOWNLOAD_TIMEOUT}"
            )
        self.PODCAST_DOWNLOAD_RETRY_ATTEMPTS = int(
            os.getenv("PODCAST_DOWNLOAD_RETRY_ATTEMPTS", "3")
        )
        self.PODCAST_USER_AGENT = os.getenv("PODCAST_USER_AGENT", "podtrim/0.1")

        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    def is_mp3_file(self, file_path):
        '''Check if the given file is an MP3.'''
        return os.path.isfile(file_path) and file_path.endswith(".mp3")
