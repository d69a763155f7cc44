from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str
    files_base_url: str = (
        "https://raw.githubusercontent.com/Shubhanflash22/F1-Quali-V-Race/refs/heads/main/Files/"
    )
    openf1_base_url: str = "https://api.openf1.org/v1"
    request_timeout: float = 30.0
    request_retries: int = 3
    db_connect_attempts: int = 10
    db_connect_interval: float = 3.0
    api_seasons: List[int] = [2023, 2024]
    qualifying_files: List[str] = [
        "Formula1_2022season_qualifyingResults.csv",
        "Formula1_2023season_qualifyingResults.csv",
        "Formula1_2024season_qualifyingResults.csv",
        "Formula1_2025Season_QualifyingResults.csv",
    ]
    race_files: List[str] = [
        "Formula1_2022season_raceResults.csv",
        "Formula1_2023season_raceResults.csv",
        "Formula1_2024season_raceResults.csv",
        "Formula1_2025Season_RaceResults.csv",
    ]
    driver_lookup_file: str = "Unique codes Drivers.csv"
    constructor_lookup_file: str = "Unique codes Constructors.csv"
    track_lookup_file: str = "Unique codes Tracks.csv"
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)


def get_settings() -> Settings:
    return Settings()
