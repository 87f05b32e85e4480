import os
from enum import Enum

from dotenv import load_dotenv

load_dotenv()


class Environment(Enum):
    """Runtime environment, deciding how the bootstrap picks its logger."""

    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TESTING = "testing"


class Env:
    APPSTRACT_ENV = os.getenv("APPSTRACT_ENV", Environment.DEVELOPMENT.value)
    APPSTRACT_CONFIG = os.getenv("APPSTRACT_CONFIG", "appstract.yaml")
    APPSTRACT_LOG_LEVEL = os.getenv("APPSTRACT_LOG_LEVEL")

    @classmethod
    def environment(cls) -> Environment:
        try:
            return Environment(cls.APPSTRACT_ENV.strip().lower())
        except ValueError:
            allowed = ", ".join(e.value for e in Environment)
            raise ValueError(
                f"Invalid APPSTRACT_ENV {cls.APPSTRACT_ENV!r}; expected one of: {allowed}"
            ) from None
