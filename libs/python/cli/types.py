"""Common CLI parameter types."""

from typing import Annotated, Optional

import typer

# Application environment (dev, staging, prod, etc.)
AppEnv = Annotated[Optional[str], typer.Option(envvar="APP_ENV")]
