from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    submission_endpoint: str = "https://api.web3forms.com/submit"
    submission_access_key: str = ""
    submission_timeout: float = 10.0
    contact_email: str = "hi@metamechsolutions.com"
    wallet_payment_url: str = "https://revolut.me/saviosyl"
    tween_duration_ms: float = 1500.0
    tween_frame_interval_ms: float = 16.0
    admin_enabled: bool = False
    session_idle_timeout: float = 300.0
    session_sweep_interval: float = 60.0
    admin_config_path: str = ".metamech_admin.json"
    cors_origins: list[str] = ["http://localhost:5173"]

    class Config:
        env_file = ".env"
        env_prefix = "METAMECH_"
