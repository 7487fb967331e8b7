"""Desired label set construction.

The desired labels for a repository are:
- the shared base labels from ``labels.json`` (cached per process)
- one ``api: <product>`` label per product the repository covers

Split repositories (mapped to one product in DRIFT) get exactly that product's
label. Everything else is treated as a mono-repo and gets a label for every API
in the catalog.
"""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Callable

from label_sync.models import ApiDescriptor, Label
from label_sync.sources import MetadataSources

logger = logging.getLogger(__name__)

API_LABEL_DESCRIPTION = "Issues related to the {display_name} API."


def api_label_color(api_shortname: str) -> str:
    """Derive a stable label color from an API short name."""

    return hashlib.md5(api_shortname.encode("utf-8"), usedforsecurity=False).hexdigest()[:6]


def api_label(api: ApiDescriptor) -> Label:
    return Label(
        name=api.github_label,
        description=API_LABEL_DESCRIPTION.format(display_name=api.display_name),
        color=api_label_color(api.api_shortname),
    )


class BaseLabelCache:
    """Process-wide holder for the base label list.

    The value is only ever replaced wholesale, so concurrent readers see either
    the old or the new list. Two events racing to populate it both fetch; the
    last write wins.
    """

    def __init__(self, loader: Callable[[], list[Label]]) -> None:
        self._loader = loader
        self._labels: tuple[Label, ...] | None = None

    @property
    def populated(self) -> bool:
        return self._labels is not None

    def get(self) -> list[Label]:
        """Return a copy of the base labels, fetching them on first use."""

        labels = self._labels
        if labels is None:
            labels = self._load()
        return list(labels)

    def refresh(self) -> list[Label]:
        """Re-fetch the base labels and replace the cached value."""

        return list(self._load())

    def invalidate(self) -> None:
        self._labels = None

    def _load(self) -> tuple[Label, ...]:
        labels = tuple(self._loader())
        self._labels = labels
        return labels


class LabelSetBuilder:
    def __init__(self, *, cache: BaseLabelCache, metadata: MetadataSources) -> None:
        self._cache = cache
        self._metadata = metadata

    def api_descriptors_for(self, repo_path: str) -> list[ApiDescriptor]:
        """Return the products whose ``api:`` labels belong on ``repo_path``.

        Args:
            repo_path: Repository in ``owner/name`` form.
        """

        mapping = self._metadata.public_repos().find_label_mapping(repo_path)
        if mapping is not None:
            logger.info(
                "Populating single API label",
                extra={"repo": repo_path, "label": mapping.github_label},
            )
            return [
                ApiDescriptor(
                    github_label=mapping.github_label,
                    api_shortname=repo_path.split("/")[-1],
                    display_name=repo_path,
                )
            ]

        logger.info("Populating all API labels", extra={"repo": repo_path})
        return list(self._metadata.api_catalog().apis)

    def build(self, repo_path: str) -> list[Label]:
        """Return every label that should exist on ``repo_path``.

        Names are unique case-insensitively; the first occurrence wins, so base
        labels take precedence over ``api:`` labels and earlier catalog entries
        over later ones.

        Raises:
            RetrievalError: If the base labels or DRIFT metadata cannot be read.
        """

        candidates = self._cache.get()
        candidates.extend(api_label(api) for api in self.api_descriptors_for(repo_path))

        labels: list[Label] = []
        seen: set[str] = set()
        for label in candidates:
            key = label.name.lower()
            if key in seen:
                logger.warning(
                    "Dropping duplicate label",
                    extra={"repo": repo_path, "label": label.name, "color": label.color},
                )
                continue
            seen.add(key)
            labels.append(label)
        return labels
