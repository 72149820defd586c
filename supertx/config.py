from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    mee_node_url: str = "https://mee-node.biconomy.io"
    polling_interval: float = 1.0
    request_timeout: float = 10.0
    rpc_timeout: float = 5.0

    across_api_url: str = "https://app.across.to/api"
    across_fill_deadline_buffer: int = 18000

    receipt_timeout: float | None = 600.0
    receipt_max_attempts: int | None = None
    tx_receipt_timeout: float = 120.0
    tx_receipt_polling_interval: float = 1.0

    meescan_url: str = "https://meescan.biconomy.io"
    jiffyscan_url: str = "https://v2.jiffyscan.xyz"

    rpc_urls: dict[int, str] = {}
    explorer_url_overrides: dict[int, str] = {}

    @property
    def mee_base_url(self) -> str:
        return self.mee_node_url.rstrip("/")

    def rpc_url(self, chain_id: int) -> str:
        url = self.rpc_urls.get(chain_id)
        if not url:
            raise KeyError(f"No RPC url configured for chain {chain_id}")
        return url

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
