from __future__ import annotations

from typing import List, Optional

from ..models import ContributionStat, SpecializationScore, UserReputation
from ..storage.record_store import REPUTATION, RecordStore


class ReputationBook:
    """
    Per-FID research reputation.

    - Records live in the `reputation` collection, one per fid.
    - Scores are unbounded; every update also bumps the per-field
      specialization score and the per-kind contribution counter.
    """

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    def _all(self) -> List[UserReputation]:
        return list(self.store.load(REPUTATION))  # type: ignore[arg-type]

    def get(self, fid: int) -> UserReputation:
        for rep in self._all():
            if rep.fid == fid:
                return rep
        return UserReputation(fid=fid)

    def update(self, fid: int, amount: float, kind: str, field: Optional[str] = None) -> UserReputation:
        """
        Apply a signed delta and record which kind of work earned it.
        Returns the updated record.
        """
        records = self._all()
        rep = next((r for r in records if r.fid == fid), None)
        if rep is None:
            rep = UserReputation(fid=fid)
            records.append(rep)

        rep.reputation_score += float(amount)

        if field:
            spec = next((s for s in rep.specializations if s.field == field), None)
            if spec is None:
                rep.specializations.append(SpecializationScore(field=field, score=float(amount)))
            else:
                spec.score += float(amount)

        stat = next((c for c in rep.contributions if c.type == kind), None)
        if stat is None:
            rep.contributions.append(ContributionStat(type=kind, count=1, score=float(amount)))
        else:
            stat.count += 1
            stat.score += float(amount)

        self.store.save(REPUTATION, records)
        return rep
