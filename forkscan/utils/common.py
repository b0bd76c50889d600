import json
import os
import sys
import requests
import yaml

from .logger import logger
from .constants import REQUEST_TIMEOUT_SEC
from .custom_exceptions import NodeError, ExplorerError

YAML_EXTENSIONS = (".yaml", ".yml")
JSON_EXTENSIONS = (".json",)

# Deployment fields holding hex strings which YAML would turn into int if unquoted
HEX_STRING_FIELDS = ("poolInitCodeHash",)


def load_env(variable_name, required=True, masked=False):
    value = os.getenv(variable_name, default=None)

    if required and not value:
        logger.error("Env not found", variable_name)
        sys.exit(1)

    printable_value = mask_text(value) if masked and value is not None else str(value)

    if value:
        logger.okay(f"{variable_name}", printable_value)
    else:
        logger.info(f"{variable_name} var is not set")

    return value


def _check_hex_values(config: dict, path: str) -> None:
    contracts = config.get("contracts")
    if not isinstance(contracts, dict):
        contracts = {}
    for key, value in contracts.items():
        if not isinstance(key, str):
            raise ValueError(
                f"{path}: contract name {key!r} in 'contracts' was parsed as integer, quote it"
            )
        if not isinstance(value, str):
            raise ValueError(
                f"{path}: address of '{key}' in 'contracts' was parsed as integer, quote it"
            )
    for field in HEX_STRING_FIELDS:
        if field in config and not isinstance(config[field], str):
            raise ValueError(f"{path}: '{field}' was parsed as integer, quote it")


def load_config(path: str) -> dict:
    extension = os.path.splitext(path)[1].lower()

    with open(path, mode="r") as config_file:
        if extension in JSON_EXTENSIONS:
            config = json.load(config_file)
        elif extension in YAML_EXTENSIONS:
            config = yaml.safe_load(config_file)
        else:
            raise ValueError(f"Unsupported config file extension: '{extension}'")

    if config is None:
        raise ValueError(f"{path}: config is empty or contains only comments")
    if not isinstance(config, dict):
        raise ValueError(f"{path}: config must be a mapping")

    _check_hex_values(config, path)
    return config


def _handle_request_errors(error_class):
    """Decorator to handle common HTTP request errors and convert them to custom exceptions."""

    def decorator(func):
        def wrapper(*args, **kwargs):
            try:
                response = func(*args, **kwargs)
                response.raise_for_status()
                return response
            except requests.exceptions.HTTPError as http_err:
                raise error_class(f"HTTP error occurred: {http_err}")
            except requests.exceptions.ConnectionError as conn_err:
                raise error_class(f"Connection error occurred: {conn_err}")
            except requests.exceptions.Timeout as timeout_err:
                raise error_class(f"Timeout error occurred: {timeout_err}")
            except requests.exceptions.RequestException as req_err:
                raise error_class(f"Request exception occurred: {req_err}")

        return wrapper

    return decorator


@_handle_request_errors(ExplorerError)
def fetch(url, headers=None):
    logger.log(f"Fetch: {mask_text(url)}")
    return requests.get(url, headers=headers, timeout=REQUEST_TIMEOUT_SEC)


@_handle_request_errors(NodeError)
def pull(url, payload=None, headers=None):
    logger.log(f"Pull: {mask_text(url)}")
    return requests.post(
        url, data=payload, headers=headers, timeout=REQUEST_TIMEOUT_SEC
    )


def mask_text(text, mask_start=3, mask_end=3):
    text_length = len(text)
    mask = "*" * (text_length - mask_start - mask_end)
    return text[:mask_start] + mask + text[text_length - mask_end :]
