"""Configuration management for the CLI tool."""

from pydantic import BaseModel, Field


class CLIConfig(BaseModel):
    """CLI configuration settings."""

    host: str = Field(default="localhost", description="Server host")
    port: int = Field(default=5000, description="Server port")
    api_prefix: str = Field(default="/api", description="API route prefix")
    timeout: float = Field(
        default=120.0, description="Per-request timeout in seconds"
    )

    @property
    def base_url(self) -> str:
        """Get the base URL for the API."""
        return f"http://{self.host}:{self.port}{self.api_prefix}"
