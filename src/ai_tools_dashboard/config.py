from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Firestore
    firestore_project_id: str = "ai-tracker-466821"
    firestore_api_key: str = ""
    firestore_access_token: str = ""
    firestore_base_url: str = "https://firestore.googleapis.com/v1"
    http_timeout_secs: float = 15.0

    # Rankings
    ranking_limit: int = 20
    homepage_limit: int = 5
    trending_limit: int = 5
    chart_top_k: int = 3

    # Static build
    output_dir: Path = Path("./public")
    concurrent_builds: int = 4
    categories: list[str] = [
        "all_categories", "ai_chatbots", "ai_coding_agents", "ai_companions",
        "ai_media_generation", "ai_models", "automation", "devices",
        "general_ai", "health_and_fitness", "marketing", "productivity",
        "robots", "social_media", "website_builder", "ai_research", "fintech",
    ]
    platforms: list[str] = ["all", "reddit", "youtube"]
    time_windows: list[int] = [7, 30, 90]

    # Reduced sample for quick local builds
    test_categories: list[str] = ["all_categories", "ai_chatbots"]
    test_platforms: list[str] = ["all", "reddit"]
    test_time_windows: list[int] = [30, 7]

    # Scheduling
    enable_scheduler: bool = False
    rebuild_interval_hours: int = 6

    # App
    site_name: str = "AI Tools Dashboard"
    log_level: str = "INFO"


settings = Settings()
