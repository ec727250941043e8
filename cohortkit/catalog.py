#!/usr/bin/env python

import json
import logging

from base64 import b64decode
from typing import Union

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives import padding

from .common_types import Catalog, ExperimentConfigError, ExperimentDefinition

logger = logging.getLogger("cohortkit.catalog")


def decrypt(encrypted_str: str, key_str: str) -> str:
    iv_str, ct_str = encrypted_str.split(".", 2)

    key = b64decode(key_str)
    iv = b64decode(iv_str)
    ct = b64decode(ct_str)

    cipher = Cipher(algorithms.AES128(key), modes.CBC(iv))
    decryptor = cipher.decryptor()

    decrypted = decryptor.update(ct) + decryptor.finalize()

    unpadder = padding.PKCS7(128).unpadder()
    bytestring = unpadder.update(decrypted) + unpadder.finalize()

    return bytestring.decode("utf-8")


def _decrypt_envelope(data: dict, decryption_key: str) -> dict:
    if not decryption_key:
        raise ExperimentConfigError("Must specify decryption_key for an encrypted catalog")
    try:
        decrypted = decrypt(data["encryptedExperiments"], decryption_key)
        experiments = json.loads(decrypted)
    except Exception as e:
        raise ExperimentConfigError(f"Failed to decrypt experiment catalog: {e}") from e
    if not isinstance(experiments, dict):
        raise ExperimentConfigError("Decrypted catalog is not a JSON object")
    return experiments


def load_catalog(data: Union[str, bytes, dict], decryption_key: str = "") -> Catalog:
    """
    Build an ordered catalog from a JSON document or decoded mapping.

    Accepted shapes:
        {"foo": {...}, "bar": {...}}
        {"experiments": {"foo": {...}}}
        {"encryptedExperiments": "<iv>.<ciphertext>"}

    Raises:
        ExperimentConfigError: for malformed documents or definitions
    """
    if isinstance(data, (str, bytes)):
        try:
            data = json.loads(data)
        except ValueError as e:
            raise ExperimentConfigError(f"Experiment catalog is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ExperimentConfigError("Experiment catalog must be a JSON object")

    if "encryptedExperiments" in data:
        experiments = _decrypt_envelope(data, decryption_key)
    elif "experiments" in data and isinstance(data["experiments"], dict):
        experiments = data["experiments"]
    else:
        experiments = data

    catalog = build_catalog(experiments)
    logger.debug("Loaded catalog with %d experiments", len(catalog))
    return catalog


def build_catalog(experiments: dict) -> Catalog:
    """Convert a name -> definition mapping, keeping catalog order."""
    catalog: Catalog = {}
    for name, definition in experiments.items():
        if isinstance(definition, ExperimentDefinition):
            if definition.name != name:
                raise ExperimentConfigError(
                    f"Experiment {definition.name} is listed under key {name}"
                )
            catalog[name] = definition
        else:
            catalog[name] = ExperimentDefinition.from_dict(name, definition)
    return catalog
