"""
Claims Manifest

The oracle's off-ledger output for one campaign: the committed root and
total, a fingerprint of the engagement snapshot it was computed from, and
each recipient's amount and proof. Recipients fetch their entry to claim;
auditors recompute the root with verify_manifest.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field

from core.crypto.addresses import normalize_address
from core.crypto.hashing import digest_from_hex, hash_canonical, to_hex
from core.merkle import MerkleVerifier, RewardTree, leaf_hash
from core.schemas.errors import ValidationError


logger = logging.getLogger(__name__)


class ClaimEntry(BaseModel):
    model_config = ConfigDict(extra="forbid")

    recipient: str
    amount: int = Field(..., gt=0)
    leaf: str
    proof: list[str] = Field(default_factory=list)


class ClaimsManifest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    campaign_id: int = Field(..., ge=1)
    merkle_root: str
    total_allocated: int
    snapshot_hash: str = Field(..., description="Canonical hash of the engagement snapshot")
    claims: list[ClaimEntry] = Field(default_factory=list)

    @classmethod
    def from_tree(
        cls,
        campaign_id: int,
        tree: RewardTree,
        engagement: Mapping[str, Any],
    ) -> "ClaimsManifest":
        return cls(
            campaign_id=campaign_id,
            merkle_root=tree.root_hex,
            total_allocated=tree.total,
            snapshot_hash=to_hex(hash_canonical(dict(engagement))),
            claims=[
                ClaimEntry(
                    recipient=recipient,
                    amount=amount,
                    leaf=to_hex(tree.leaf_for(recipient)),
                    proof=[to_hex(p) for p in proof],
                )
                for recipient, amount, proof in tree.iter_claims()
            ],
        )

    def allocations(self) -> dict[str, int]:
        return {c.recipient: c.amount for c in self.claims}

    def claim_for(self, recipient: str) -> ClaimEntry:
        """
        Raises:
            KeyError: If recipient has no entry
        """
        address = normalize_address(recipient)
        for claim in self.claims:
            if claim.recipient == address:
                return claim
        raise KeyError(f"No claim for {address} in campaign {self.campaign_id}")

    def save(self, path: str | Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(mode="json"), f, indent=2)
        return path

    @classmethod
    def load(cls, path: str | Path) -> "ClaimsManifest":
        with open(path) as f:
            return cls.model_validate(json.load(f))


def manifest_path(directory: str | Path, campaign_id: int) -> Path:
    return Path(directory) / f"campaign-{campaign_id}.json"


def verify_manifest(manifest: ClaimsManifest) -> list[str]:
    """
    Independently recheck a manifest.

    Returns a list of problems; an empty list means the manifest is
    consistent with its own root and total.
    """
    problems: list[str] = []
    try:
        tree = RewardTree(manifest.allocations())
    except ValidationError as e:
        return [f"Allocations cannot be committed: {e.message}"]

    if tree.root_hex != manifest.merkle_root.lower():
        problems.append(f"Root mismatch: manifest {manifest.merkle_root}, recomputed {tree.root_hex}")
    if tree.total != manifest.total_allocated:
        problems.append(
            f"Total mismatch: manifest {manifest.total_allocated}, recomputed {tree.total}"
        )

    try:
        root = digest_from_hex(manifest.merkle_root)
    except ValueError as e:
        problems.append(f"Malformed root: {e}")
        return problems

    for claim in manifest.claims:
        if to_hex(leaf_hash(claim.recipient, claim.amount)) != claim.leaf.lower():
            problems.append(f"Leaf mismatch for {claim.recipient}")
        try:
            siblings = [digest_from_hex(p) for p in claim.proof]
        except ValueError:
            problems.append(f"Malformed proof for {claim.recipient}")
            continue
        if not MerkleVerifier.verify_claim(root, claim.recipient, claim.amount, siblings):
            problems.append(f"Proof does not verify for {claim.recipient}")

    if problems:
        logger.debug(f"Manifest for campaign {manifest.campaign_id}: {len(problems)} problem(s)")
    return problems
