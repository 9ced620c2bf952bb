"""
Configuration Management Module

This module handles all configuration settings for the personalization engine,
including analyzer tables limits, update rates, scheduler intervals and
storage settings.
"""

import os
import json
import yaml
from typing import Dict, Any, Optional, List
from pathlib import Path
import logging
from dataclasses import dataclass, asdict, field

logger = logging.getLogger(__name__)


@dataclass
class AnalyzerConfig:
    """Configuration for content analysis."""
    max_topics: int = 10
    max_keywords: int = 15
    max_alternative_categories: int = 3
    words_per_minute: int = 200

    # Language detection
    language_seed: int = 0
    min_language_text_length: int = 20

    # spaCy pipeline for tagging and named entities
    spacy_model: str = 'en_core_web_sm'
    max_nlp_characters: int = 100000

    # Recent analysis cache
    cache_size: int = 1000
    cache_ttl_seconds: int = 24 * 60 * 60


@dataclass
class EngagementConfig:
    """Configuration for engagement prediction."""
    factor_weights: Dict[str, float] = field(default_factory=lambda: {
        'content_quality': 0.25,
        'readability': 0.15,
        'media_richness': 0.15,
        'interactivity': 0.10,
        'personal_relevance': 0.20,
        'timeliness': 0.10,
        'social_signals': 0.05,
    })
    high_threshold: float = 0.7
    medium_threshold: float = 0.4
    fallback_score: float = 0.5

    # Telemetry normalisation
    dwell_time_saturation_seconds: float = 300.0
    media_saturation: int = 10
    social_saturation: int = 3


@dataclass
class MoodConfig:
    """Configuration for mood inference."""
    window_size: int = 100
    recent_events: int = 20
    min_events: int = 5
    history_size: int = 50

    # Thresholds (seconds)
    impatient_gap_seconds: float = 2.0
    impatient_min_clicks: int = 10
    focused_gap_seconds: float = 5.0
    distracted_gap_seconds: float = 10.0


@dataclass
class TrackerConfig:
    """Configuration for the interest and preference tracker."""
    # Interests
    decay_factor: float = 0.95
    learning_rate: float = 0.1
    keyword_relevance: float = 0.5
    category_relevance: float = 0.7
    new_keyword_factor: float = 0.3
    new_category_factor: float = 0.5
    evolution_history_size: int = 50
    max_interests: int = 500

    # Behaviour patterns
    aggregate_behavior_patterns: bool = True
    max_pattern_contexts: int = 20
    max_behavior_patterns: int = 200

    # Preferences and personality
    preference_smoothing: float = 0.9
    preference_initial_weight: float = 0.1
    preference_initial_confidence: float = 0.1
    preference_switch_threshold: float = 0.05
    confidence_step: float = 0.01
    personality_smoothing: float = 0.9

    # Recent visits kept on the profile
    recent_visits_size: int = 100


@dataclass
class RecommendationConfig:
    """Configuration for adaptive recommendations."""
    top_interests: int = 10
    interest_suggestions: int = 5
    trending_window: int = 5
    trending_min_slope: float = 0.005
    project_window: int = 20
    project_min_visits: int = 3
    max_projects: int = 5
    ignored_project_domains: List[str] = field(default_factory=lambda: ['google', 'wikipedia'])


@dataclass
class SchedulerConfig:
    """Configuration for the continuous learning scheduler."""
    persistence_interval_seconds: float = 300.0
    reanalysis_interval_seconds: float = 60.0
    retrain_check_interval_seconds: float = 30.0
    retrain_every_interactions: int = 100
    reanalysis_window: int = 20
    reanalysis_min_visits: int = 5


@dataclass
class DatabaseConfig:
    """Configuration for database settings."""
    url: str = 'sqlite:///data/nexus_profiles.db'
    echo: bool = False


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: str = 'INFO'
    log_dir: str = 'logs'
    log_file: str = 'app.log'
    error_file: str = 'errors.log'
    rotation: str = '100 MB'
    retention: str = '7 days'
    enable_console: bool = True
    enable_files: bool = True


@dataclass
class PrivacyConfig:
    """Configuration for privacy and retention."""
    retention_days: int = 30
    anonymize_urls: bool = False
    sanitize_text: bool = True


@dataclass
class SystemConfig:
    """Main system configuration containing all sub-configurations."""
    analyzer: AnalyzerConfig = field(default_factory=AnalyzerConfig)
    engagement: EngagementConfig = field(default_factory=EngagementConfig)
    mood: MoodConfig = field(default_factory=MoodConfig)
    tracker: TrackerConfig = field(default_factory=TrackerConfig)
    recommendation: RecommendationConfig = field(default_factory=RecommendationConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    privacy: PrivacyConfig = field(default_factory=PrivacyConfig)

    environment: str = 'development'  # development, staging, production
    debug: bool = False


class ConfigManager:
    """Manages configuration loading, validation, and updates."""

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to configuration file (YAML or JSON)
        """
        self.config_path = config_path or 'config/nexus.yaml'
        self.config = SystemConfig()
        self._load_config()
        self._setup_environment_overrides()

    def _load_config(self):
        """Load configuration from file."""
        config_file = Path(self.config_path)
        if not config_file.exists():
            logger.info("Configuration file not found, using defaults")
            return

        try:
            with open(config_file, 'r') as f:
                if config_file.suffix.lower() == '.json':
                    config_data = json.load(f)
                elif config_file.suffix.lower() in ['.yaml', '.yml']:
                    config_data = yaml.safe_load(f)
                else:
                    logger.warning(f"Unsupported config file format: {config_file.suffix}")
                    return
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.error(f"Error loading configuration: {e}")
            logger.info("Using default configuration")
            return

        self._update_config_from_dict(config_data or {})
        logger.info(f"Loaded configuration from {self.config_path}")

    def _update_config_from_dict(self, config_dict: Dict[str, Any]):
        """Update configuration from dictionary."""
        for section_name, section_config in config_dict.items():
            if not hasattr(self.config, section_name):
                logger.warning(f"Ignoring unknown configuration section: {section_name}")
                continue

            section_obj = getattr(self.config, section_name)
            if hasattr(section_obj, '__dataclass_fields__') and isinstance(section_config, dict):
                for field_name, field_value in section_config.items():
                    if hasattr(section_obj, field_name):
                        setattr(section_obj, field_name, field_value)
                    else:
                        logger.warning(f"Ignoring unknown setting: {section_name}.{field_name}")
            else:
                setattr(self.config, section_name, section_config)

    def _setup_environment_overrides(self):
        """Setup environment variable overrides."""
        if os.getenv('NEXUS_DATABASE_URL'):
            self.config.database.url = os.getenv('NEXUS_DATABASE_URL')
        if os.getenv('NEXUS_LOG_LEVEL'):
            self.config.logging.level = os.getenv('NEXUS_LOG_LEVEL').upper()
        if os.getenv('NEXUS_LOG_DIR'):
            self.config.logging.log_dir = os.getenv('NEXUS_LOG_DIR')
        if os.getenv('NEXUS_RETENTION_DAYS'):
            try:
                self.config.privacy.retention_days = int(os.getenv('NEXUS_RETENTION_DAYS'))
            except ValueError:
                logger.warning("NEXUS_RETENTION_DAYS is not an integer, keeping configured value")
        if os.getenv('NEXUS_DEBUG'):
            self.config.debug = os.getenv('NEXUS_DEBUG').lower() == 'true'
        if os.getenv('NEXUS_ENVIRONMENT'):
            self.config.environment = os.getenv('NEXUS_ENVIRONMENT')

    def get_config(self) -> SystemConfig:
        """Get the current configuration."""
        return self.config

    def update_config(self, updates: Dict[str, Any]):
        """Update configuration with new values."""
        self._update_config_from_dict(updates)
        logger.info("Configuration updated successfully")

    def save_config(self, path: Optional[str] = None):
        """Save current configuration to file."""
        save_path = path or self.config_path
        config_dict = asdict(self.config)

        Path(save_path).parent.mkdir(parents=True, exist_ok=True)

        with open(save_path, 'w') as f:
            if save_path.endswith('.json'):
                json.dump(config_dict, f, indent=2, default=str)
            else:
                yaml.dump(config_dict, f, default_flow_style=False)

        logger.info(f"Configuration saved to {save_path}")

    def validate_config(self) -> Dict[str, Any]:
        """Validate current configuration."""
        validation_results = {
            'valid': True,
            'errors': [],
            'warnings': []
        }

        total_weight = sum(self.config.engagement.factor_weights.values())
        if abs(total_weight - 1.0) > 0.01:
            validation_results['warnings'].append(
                f"Engagement factor weights sum to {total_weight:.3f}, not 1.0"
            )

        if not 0 < self.config.tracker.decay_factor <= 1:
            validation_results['errors'].append("Interest decay factor must be in (0, 1]")

        if self.config.mood.history_size <= 0:
            validation_results['errors'].append("Mood history size must be positive")

        scheduler = self.config.scheduler
        for name in ('persistence_interval_seconds', 'reanalysis_interval_seconds',
                     'retrain_check_interval_seconds'):
            if getattr(scheduler, name) <= 0:
                validation_results['errors'].append(f"Scheduler {name} must be positive")

        if scheduler.retrain_every_interactions <= 0:
            validation_results['errors'].append("Retraining interaction count must be positive")

        if validation_results['errors']:
            validation_results['valid'] = False

        return validation_results


def load_config(config_path: Optional[str] = None) -> SystemConfig:
    """Load a configuration without keeping a manager around."""
    return ConfigManager(config_path).get_config()
