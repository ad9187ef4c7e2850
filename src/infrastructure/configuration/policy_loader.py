"""Policy Configuration Loader.

Reads the JSON access policy from disk and turns it into a `PolicySet`. The
loader never raises: every problem is logged and answered with the built-in
default policy, so a broken file can never widen access.

Accepted document shape (keys are matched case-insensitively and may be
written in camelCase or snake_case)::

    {
      "allowedRoots": [
        {"path": "HKCU\\\\Software\\\\Vendor", "access": "read_write", "maxDepth": 3}
      ],
      "deniedPaths": ["HKLM\\\\SECURITY"]
    }

Entry rules:
- ``access`` defaults to ``read``; unknown names fall back to ``read``.
- ``maxDepth`` defaults to 2 and must be a JSON integer between 1 and 10;
  strings and booleans are not converted.
- Entries with an empty or unparsable path, or an invalid depth, are skipped.
- If no valid allow entry remains, the default policy is used instead.
- A missing ``deniedPaths`` means nothing is explicitly denied.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import structlog
from pydantic import BaseModel, ConfigDict, Field, StrictInt
from pydantic import ValidationError as PydanticValidationError

from src.core.exceptions import InvalidPathError
from src.domain.value_objects.access_tier import AccessTier
from src.domain.value_objects.policy import AllowRule, PolicySet
from src.domain.value_objects.registry_path import RegistryPath

logger = structlog.get_logger(__name__)


def _fold_key(key: str) -> str:
    return key.replace("_", "").replace("-", "").lower()


def _fold_keys(document: Dict[str, Any]) -> Dict[str, Any]:
    return {_fold_key(str(k)): v for k, v in document.items()}


class AllowRuleEntry(BaseModel):
    """One raw allow entry after key folding."""

    model_config = ConfigDict(extra="ignore")

    path: str = Field(min_length=1)
    access: str = "read"
    maxdepth: StrictInt = Field(default=AllowRule.DEFAULT_DEPTH, ge=AllowRule.MIN_DEPTH, le=AllowRule.MAX_DEPTH)


class PolicyConfigurationLoader:
    """Loads a `PolicySet` from a JSON file, falling back to defaults."""

    def load(self, path: Optional[Union[str, Path]]) -> PolicySet:
        """Load the policy at `path`.

        Args:
            path: Location of the JSON policy file, or None.

        Returns:
            PolicySet: The configured policy, or the default policy when the
            file is missing, unreadable, malformed or holds no valid rule.
        """
        if path is None or not str(path).strip():
            logger.info("policy_file_not_configured", fallback="default")
            return PolicySet.default()

        file_path = Path(path)
        if not file_path.is_file():
            logger.warning("policy_file_not_found", path=str(file_path), fallback="default")
            return PolicySet.default()

        try:
            document = json.loads(file_path.read_text(encoding="utf-8-sig"))
        except json.JSONDecodeError as e:
            logger.warning(
                "policy_file_invalid_json",
                path=str(file_path),
                error=str(e),
                fallback="default",
            )
            return PolicySet.default()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(
                "policy_file_unreadable",
                path=str(file_path),
                error=str(e),
                fallback="default",
            )
            return PolicySet.default()

        return self.from_document(document, source=str(file_path))

    def from_document(self, document: Any, source: str = "inline") -> PolicySet:
        """Build a policy from an already decoded JSON document.

        Args:
            document: Decoded JSON value.
            source: Label recorded on the resulting policy.

        Returns:
            PolicySet: The configured policy, or the default policy.
        """
        if not isinstance(document, dict):
            logger.warning("policy_document_not_an_object", source=source, fallback="default")
            return PolicySet.default()

        folded = _fold_keys(document)
        raw_rules = folded.get("allowedroots")
        if not isinstance(raw_rules, list):
            logger.warning("policy_allowed_roots_missing", source=source, fallback="default")
            return PolicySet.default()

        rules = self._parse_allow_rules(raw_rules, source)
        if not rules:
            logger.warning("policy_has_no_valid_rules", source=source, fallback="default")
            return PolicySet.default()

        deny_paths = self._parse_deny_paths(folded.get("deniedpaths"), source)

        policy = PolicySet.from_rules(rules, deny_paths, source=source)
        logger.info(
            "policy_loaded",
            source=source,
            allow_rules=len(policy.allow_rules),
            deny_paths=len(policy.deny_paths),
        )
        return policy

    def _parse_allow_rules(self, raw_rules: List[Any], source: str) -> List[AllowRule]:
        rules: List[AllowRule] = []
        for index, raw in enumerate(raw_rules):
            if not isinstance(raw, dict):
                logger.warning("policy_rule_skipped", source=source, index=index, error="not an object")
                continue
            try:
                entry = AllowRuleEntry.model_validate(_fold_keys(raw))
                root = RegistryPath.parse(entry.path)
                tier = AccessTier.from_name(entry.access)
                if tier is None:
                    logger.warning(
                        "policy_rule_unknown_access",
                        source=source,
                        index=index,
                        access=entry.access,
                        fallback="read",
                    )
                    tier = AccessTier.READ_ONLY
                rules.append(AllowRule(root=root, tier=tier, max_depth=entry.maxdepth))
            except (PydanticValidationError, InvalidPathError, ValueError) as e:
                logger.warning("policy_rule_skipped", source=source, index=index, error=str(e))
        return rules

    def _parse_deny_paths(self, raw_paths: Any, source: str) -> List[RegistryPath]:
        if raw_paths is None:
            return []
        if not isinstance(raw_paths, list):
            logger.warning("policy_denied_paths_ignored", source=source, error="not a list")
            return []

        deny_paths: List[RegistryPath] = []
        for index, raw in enumerate(raw_paths):
            if not isinstance(raw, str):
                logger.warning("policy_deny_path_skipped", source=source, index=index, error="not a string")
                continue
            try:
                deny_paths.append(RegistryPath.parse(raw))
            except InvalidPathError as e:
                logger.warning("policy_deny_path_skipped", source=source, index=index, error=str(e))
        return deny_paths
