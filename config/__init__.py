"""
Configuration management for the electric field line visualiser.

This module provides centralized configuration handling with YAML-based
parameter files and runtime configuration management.
"""

import yaml
from pathlib import Path
from typing import Dict, Any, List, Optional, Union
import torch


class ConfigManager:
    """
    Centralized configuration manager for simulation, tracing and rendering parameters.

    Handles loading, merging, and validation of configuration files with
    support for scene-specific overrides and runtime parameter updates.
    """

    def __init__(self, config_dir: Optional[Union[str, Path]] = None):
        """
        Initialize configuration manager.

        Args:
            config_dir: Directory containing configuration files
        """
        if config_dir is None:
            config_dir = Path(__file__).parent
        self.config_dir = Path(config_dir)
        self._config = {}
        self._loaded_files = []

    def load_config(self, config_file: str) -> Dict[str, Any]:
        """
        Load configuration from YAML file.

        Args:
            config_file: Name of configuration file (with or without .yaml extension)

        Returns:
            Dictionary containing configuration parameters

        Raises:
            FileNotFoundError: If configuration file doesn't exist
            yaml.YAMLError: If YAML parsing fails
        """
        if not config_file.endswith('.yaml'):
            config_file += '.yaml'

        config_path = self.config_dir / config_file

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)

            self._loaded_files.append(config_file)
            return config or {}

        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Error parsing {config_file}: {e}")

    def load_base_config(self) -> Dict[str, Any]:
        """Load base configuration file."""
        return self.load_config('base_config.yaml')

    def load_charges_config(self) -> Dict[str, Any]:
        """Load the charge layout configuration."""
        return self.load_config('charges.yaml')

    def merge_configs(self, *configs: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge multiple configuration dictionaries.

        Later configurations override earlier ones for conflicting keys.

        Args:
            *configs: Configuration dictionaries to merge

        Returns:
            Merged configuration dictionary
        """
        merged = {}

        for config in configs:
            merged = self._deep_merge(merged, config)

        return merged

    def _deep_merge(self, dict1: Dict[str, Any], dict2: Dict[str, Any]) -> Dict[str, Any]:
        """
        Deep merge two dictionaries.

        Args:
            dict1: Base dictionary
            dict2: Override dictionary

        Returns:
            Merged dictionary
        """
        result = dict1.copy()

        for key, value in dict2.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def load_full_config(self) -> Dict[str, Any]:
        """
        Load and merge all configuration files.

        Returns:
            Complete merged configuration
        """
        base_config = self.load_base_config()
        charges_config = self.load_charges_config()

        # Scene file takes precedence over the base settings
        full_config = self.merge_configs(base_config, charges_config)

        full_config = self.validate_config(full_config)

        self._config = full_config
        return full_config

    def validate_config(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate and process configuration parameters.

        Args:
            config: Configuration dictionary to validate

        Returns:
            Validated and processed configuration

        Raises:
            ValueError: If configuration validation fails
        """
        # Convert scientific notation strings to numbers
        config = self._process_numeric_values(config)

        required_sections = ['charges', 'motion', 'oscillation', 'tracing', 'colors']
        for section in required_sections:
            if section not in config:
                raise ValueError(f"Required configuration section missing: {section}")

        self._validate_charges(config['charges'])

        tracing = config['tracing']
        if float(tracing.get('step_size', 0)) <= 0:
            raise ValueError("Tracing step size must be positive")
        if int(tracing.get('max_steps', 0)) <= 0:
            raise ValueError("Tracing max_steps must be positive")
        if int(tracing.get('lines_per_charge', 0)) < 0:
            raise ValueError("Tracing lines_per_charge must not be negative")

        motion = config['motion']
        for key in ('rotation_axis', 'pivot'):
            if key in motion:
                self._validate_vector(motion[key], f"motion.{key}")

        for name, color in config['colors'].items():
            self._validate_vector(color, f"colors.{name}")

        oscillation = config['oscillation']
        if float(oscillation.get('speed', 1.0)) < 0:
            raise ValueError("Oscillation speed must not be negative")

        # Resolve device, preferring CUDA when available
        device_config = config.get('hardware', {}).get('device', 'auto')
        if device_config == 'auto':
            config['device'] = 'cuda' if torch.cuda.is_available() else 'cpu'
        else:
            config['device'] = device_config

        return config

    def _validate_charges(self, charges: List[Dict[str, Any]]):
        """Check every charge entry has a 3D position and a numeric charge."""
        if not isinstance(charges, list):
            raise ValueError("Configuration 'charges' must be a list")

        for i, entry in enumerate(charges):
            if not isinstance(entry, dict) or 'position' not in entry or 'charge' not in entry:
                raise ValueError(f"Charge {i} needs 'position' and 'charge' entries")
            self._validate_vector(entry['position'], f"charges[{i}].position")
            try:
                float(entry['charge'])
            except (TypeError, ValueError):
                raise ValueError(f"charges[{i}].charge must be a number, got {entry['charge']!r}")

    def _validate_vector(self, value: Any, name: str):
        if not isinstance(value, (list, tuple)) or len(value) != 3:
            raise ValueError(f"{name} must be a list of three numbers")

    def _process_numeric_values(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Process numeric strings in configuration (including scientific notation).

        PyYAML reads values such as ``1e-3`` as strings; these are converted
        to floats.

        Args:
            config: Configuration dictionary

        Returns:
            Configuration with processed numeric values
        """
        def convert_numeric(obj):
            if isinstance(obj, dict):
                return {k: convert_numeric(v) for k, v in obj.items()}
            elif isinstance(obj, list):
                return [convert_numeric(item) for item in obj]
            elif isinstance(obj, str):
                stripped = obj.strip()
                if stripped.lower() in ('inf', '-inf', '+inf', 'nan', 'infinity', '-infinity'):
                    return obj
                try:
                    return float(stripped)
                except ValueError:
                    return obj
            else:
                return obj

        return convert_numeric(config)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by key.

        Supports dot notation for nested keys (e.g., 'tracing.step_size').

        Args:
            key: Configuration key
            default: Default value if key not found

        Returns:
            Configuration value
        """
        if not self._config:
            self.load_full_config()

        keys = key.split('.')
        value = self._config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """
        Set configuration value by key.

        Supports dot notation for nested keys.

        Args:
            key: Configuration key
            value: Value to set
        """
        if not self._config:
            self.load_full_config()

        keys = key.split('.')
        config = self._config

        # Navigate to parent of target key
        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value

    def save_config(self, filename: str, config: Optional[Dict[str, Any]] = None) -> None:
        """
        Save configuration to YAML file.

        Args:
            filename: Output filename
            config: Configuration to save (uses current config if None)
        """
        if config is None:
            config = self._config

        if not filename.endswith('.yaml'):
            filename += '.yaml'

        output_path = self.config_dir / filename

        with open(output_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(self._make_yaml_serializable(config), f,
                           default_flow_style=False, indent=2, sort_keys=False)

    def _make_yaml_serializable(self, obj: Any) -> Any:
        """
        Convert object to YAML-serializable format.

        Args:
            obj: Object to convert

        Returns:
            YAML-serializable object
        """
        if isinstance(obj, dict):
            return {k: self._make_yaml_serializable(v) for k, v in obj.items()}
        elif isinstance(obj, (list, tuple)):
            return [self._make_yaml_serializable(item) for item in obj]
        elif isinstance(obj, torch.Tensor):
            return obj.tolist()
        else:
            return obj

    @property
    def loaded_files(self) -> list:
        """Get list of loaded configuration files."""
        return self._loaded_files.copy()


__all__ = ['ConfigManager']
