from dataclasses import dataclass
from typing import List, Optional

from loguru import logger

from core.entities.waste_report import REPORT_STATUSES, WASTE_SIZE_TOKENS, WasteReport, tokens_for_waste_size
from core.repositories.report_repository import ReportRepository
from core.repositories.token_repository import TokenRepository
from core.use_cases.store_calls import call_store
from core.use_cases.token_use_cases import award_for_report


class ReportNotFoundError(LookupError):
    pass


@dataclass
class SubmittedReport:
    report: WasteReport
    tokens_awarded: int
    rewarded: bool


async def submit_report(
    report_repo: ReportRepository,
    token_repo: TokenRepository,
    user_id: int,
    title: str,
    waste_size: str,
    description: Optional[str] = None,
    location: Optional[str] = None,
) -> SubmittedReport:
    title = (title or "").strip()
    if not title:
        raise ValueError("Title is required")
    if waste_size not in WASTE_SIZE_TOKENS:
        raise ValueError(f"Unsupported waste size: {waste_size!r}")

    report = await call_store(
        report_repo.create_report,
        user_id=user_id,
        title=title,
        description=description,
        location=location,
        waste_size=waste_size,
    )
    # отчёт уже сохранён, неудачное начисление отчёт не откатывает
    rewarded = await award_for_report(token_repo, user_id, waste_size, title)
    if not rewarded:
        logger.warning("Report {} saved but no tokens were awarded to user {}", report.id, user_id)
    return SubmittedReport(
        report=report,
        tokens_awarded=tokens_for_waste_size(waste_size) if rewarded else 0,
        rewarded=rewarded,
    )


async def set_report_status(repo: ReportRepository, report_id: int, status: str) -> WasteReport:
    status = (status or "").strip().lower()
    if status not in REPORT_STATUSES:
        raise ValueError("Invalid status")
    existing = await call_store(repo.get_report, report_id)
    if existing is None:
        raise ReportNotFoundError(f"Report {report_id} not found")
    updated = await call_store(repo.update_status, report_id, status)
    logger.info("Report {} status {} -> {}", report_id, existing.status, updated.status)
    return updated


async def list_reports(
    repo: ReportRepository,
    user_id: Optional[int] = None,
    status: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> List[WasteReport]:
    if status is not None and status not in REPORT_STATUSES:
        raise ValueError("Invalid status")
    limit = max(1, min(100, int(limit)))
    offset = max(0, int(offset))
    return await call_store(repo.list_reports, user_id=user_id, status=status, limit=limit, offset=offset)
