"""SessionEngine: the state machine and task registry behind every tool.

One engine owns one project's session. Operations are serialized through an
asyncio lock and each mutating operation ends with a snapshot write. ``panic``
is the exception: it never waits for the lock.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Iterable, Mapping
from pathlib import Path

from driftguard.audit import AuditRecord, AuditTrail
from driftguard.config import Config, load_config
from driftguard.coordination import ClaimResult, ScopeClaim, ScopeCoordinator
from driftguard.errors import (
    DelegationError,
    IntentMissingError,
    NoActiveTaskError,
    StateTransitionError,
)
from driftguard.integrity import HealthReport, IntegrityMonitor, matches_any
from driftguard.logging import get_logger
from driftguard.risk import RiskResult, RiskScorer
from driftguard.session import state_machine as sm
from driftguard.session.results import (
    CheckpointResult,
    ExplainResult,
    HandoffPacket,
    HelpPacket,
    InitResult,
    StatusReport,
    StepResult,
    VerifyResult,
)
from driftguard.session.schema import (
    ChecklistItem,
    DriftGuardState,
    FocusState,
    LogBuffer,
    LogEntry,
    Session,
    StrictnessLevel,
    Task,
    short_id,
    utc_now_iso,
)
from driftguard.session.storage import StateStore
from driftguard.session.strictness import scan_for_strictness
from driftguard.terminal import ProcessExecutor, SubprocessExecutor
from driftguard.vcs import GitAdapter, RevisionControl

log = get_logger("engine")

MAX_EXPLAINED_CHANGES = 5
INTENT_LOG_CHARS = 100
HANDOFF_STEPS = 3
PANIC_LOG_ENTRIES = 3

ChecklistInput = ChecklistItem | Mapping[str, str] | str


def _coerce_item(index: int, item: ChecklistInput) -> ChecklistItem:
    if isinstance(item, ChecklistItem):
        return ChecklistItem(id=item.id, text=item.text)
    if isinstance(item, str):
        return ChecklistItem(id=str(index + 1), text=item)
    return ChecklistItem(id=str(item.get("id", index + 1)), text=item.get("text", ""))


class SessionEngine:
    """Coordinates one agent session against a project directory.

    Collaborators default to git and a subprocess executor rooted at the
    project path; tests pass fakes for both.
    """

    def __init__(
        self,
        project_path: str | Path | None = None,
        *,
        config: Config | None = None,
        vcs: RevisionControl | None = None,
        executor: ProcessExecutor | None = None,
    ) -> None:
        root = Path(project_path or os.getcwd()).resolve()
        self._config: Config = config if config is not None else load_config(project_root=str(root))
        self._injected_vcs = vcs
        self._injected_executor = executor
        self._lock = asyncio.Lock()
        self._coordinator = ScopeCoordinator()
        self.initialized = False
        self._bind(root)
        self.state = self._fresh_state()

    def _bind(self, project_path: str | Path) -> None:
        """Point the engine and its collaborators at ``project_path``."""
        self._project_path = str(Path(project_path).resolve())
        config = self._config

        state_dir = Path(config.storage.state_dir)
        if not state_dir.is_absolute():
            state_dir = Path(self._project_path) / state_dir
        self._store = StateStore(state_dir, log_capacity=config.storage.max_log_entries)

        self._vcs: RevisionControl = self._injected_vcs or GitAdapter(
            self._project_path, notes_ref=config.audit.notes_ref
        )
        self._executor: ProcessExecutor = self._injected_executor or SubprocessExecutor(
            default_cwd=self._project_path
        )
        self._audit = AuditTrail(self._vcs)
        self._integrity = IntegrityMonitor(self._vcs, self._project_path)
        self._risk = RiskScorer(
            self._vcs,
            window_days=config.risk.window_days,
            max_commits=config.risk.max_commits,
        )

    def _fresh_state(self) -> DriftGuardState:
        return DriftGuardState(logs=LogBuffer(capacity=self.config.storage.max_log_entries))

    @property
    def project_path(self) -> str:
        return self._project_path

    @property
    def config(self) -> Config:
        return self._config

    @property
    def store(self) -> StateStore:
        return self._store

    @property
    def session(self) -> Session:
        return self.state.session

    # Internals -------------------------------------------------------------

    def _log(self, action: str, task_id: str | None = None, details: str | None = None) -> None:
        self.state.logs.append(LogEntry(action=action, task_id=task_id, details=details))
        log.debug("%s task=%s %s", action, task_id, details or "")

    async def _persist(self) -> None:
        await self._store.save(self.state)

    def _require_task(self, hint: str = "Use dg_propose_task first.") -> Task:
        task = self.state.active_task()
        if task is None:
            raise NoActiveTaskError(hint)
        return task

    def _refresh_claim_cache(self) -> None:
        self.state.session.active_claims = self.state.all_claims()

    async def _refresh_hashes(self, patterns: list[str]) -> None:
        """Replace the baseline for every file under ``patterns``."""
        if patterns:
            self._replace_baseline(patterns, await self._integrity.calculate_file_hashes(patterns))

    def _replace_baseline(self, patterns: list[str], current: dict[str, str]) -> None:
        known = self.state.session.last_known_file_hashes
        for path in [p for p in known if p not in current and matches_any(p, patterns)]:
            del known[path]
        known.update(current)

    def _check_not_panicked(self, action: str) -> None:
        """Refuse to finish ``action`` if a panic landed while it awaited I/O."""
        if self.state.session.current_state is FocusState.PANIC:
            raise StateTransitionError(
                action,
                FocusState.PANIC,
                sm.allowed_states(action),
                message=f'"{action}" abandoned: the session entered PANIC while it was running.',
            )

    def _ensure_gitignore(self) -> None:
        entry = Path(self.config.storage.state_dir).name
        gitignore = Path(self._project_path) / ".gitignore"
        try:
            existing = gitignore.read_text(encoding="utf-8") if gitignore.exists() else ""
            if entry in (line.strip().rstrip("/") for line in existing.splitlines()):
                return
            prefix = "" if not existing or existing.endswith("\n") else "\n"
            with open(gitignore, "a", encoding="utf-8") as f:
                f.write(f"{prefix}{entry}\n")
        except OSError as e:
            log.debug("Could not update %s: %s", gitignore, e)

    # Lifecycle -------------------------------------------------------------

    async def initialize(self, project_path: str | Path | None = None) -> InitResult:
        """Create or reopen the state directory for the project.

        Returns:
            InitResult with status "created" for a new directory or "exists"
            when an existing one was hydrated.
        """
        async with self._lock:
            if project_path is not None:
                self._bind(project_path)

            if self._store.exists():
                status = "exists"
                loaded = await self._store.load()
                self.state = loaded if loaded is not None else self._fresh_state()
            else:
                status = "created"
                await asyncio.to_thread(self._store.state_dir.mkdir, parents=True, exist_ok=True)
                self.state = self._fresh_state()

            await asyncio.to_thread(self._ensure_gitignore)
            level, reason = await asyncio.to_thread(scan_for_strictness, self._project_path)
            self.initialized = True
            self._log(sm.INIT, details=f"{status}: recommended L{int(level)} ({reason})")
            await self._persist()

            log.info("DriftGuard %s at %s", status, self._store.state_dir)
            return InitResult(
                status=status,
                path=str(self._store.state_dir),
                recommended_strictness=level,
                reason=reason,
            )

    async def hydrate(self) -> bool:
        """Load the snapshot from disk. Returns False if there is none."""
        async with self._lock:
            loaded = await self._store.load()
            if loaded is None:
                return False
            self.state = loaded
            self.initialized = True
            log.info(
                "Restored session %s (%d tasks, state %s)",
                loaded.session.session_id,
                len(loaded.tasks),
                loaded.session.current_state.value,
            )
            return True

    async def reset(self) -> None:
        """Discard all state, including PANIC, and start a fresh session."""
        async with self._lock:
            self.state = self._fresh_state()
            self.initialized = False
            self._log(sm.RESET)
            await self._persist()

    # Task lifecycle --------------------------------------------------------

    async def propose_task(
        self,
        title: str,
        goal: str,
        allowed_scopes: Iterable[str] | None = None,
        checklist: Iterable[ChecklistInput] | None = None,
        strictness: StrictnessLevel | int | None = None,
    ) -> Task:
        """Register a task contract and make it the active task.

        Raises:
            StateTransitionError: Not IDLE.
            ValueError: Duplicate checklist ids.
        """
        async with self._lock:
            session = self.state.session
            sm.validate_transition(sm.PROPOSE_TASK, session.current_state)

            task = Task(
                task_id=short_id("task"),
                title=title,
                goal=goal,
                allowed_scopes=list(allowed_scopes or []) or ["**"],
                checklist=[_coerce_item(i, item) for i, item in enumerate(checklist or [])],
                strictness=StrictnessLevel(
                    strictness if strictness is not None else StrictnessLevel.LOGGED
                ),
            )
            self.state.tasks[task.task_id] = task
            session.active_task_id = task.task_id
            session.active_step_id = None
            session.intent_filed = False
            session.is_verified = False
            session.current_state = FocusState.PLANNING

            self._log(sm.PROPOSE_TASK, task.task_id, title)
            await self._persist()
            return task

    async def begin_step(self, step_id: str | None = None) -> StepResult:
        async with self._lock:
            session = self.state.session
            sm.validate_transition(sm.BEGIN_STEP, session.current_state)
            task = self._require_task()

            session.active_step_id = step_id or short_id("step")
            session.current_state = FocusState.EXECUTING

            self._log(sm.BEGIN_STEP, task.task_id, session.active_step_id)
            await self._persist()
            return StepResult(task.task_id, session.active_step_id, session.current_state)

    async def report_intent(self, intent: str, files_to_touch: Iterable[str] | None = None) -> StepResult:
        """File what the next step will do and move into EXECUTING."""
        async with self._lock:
            session = self.state.session
            sm.validate_transition(sm.REPORT_INTENT, session.current_state)
            task = self._require_task()

            task.last_intent = intent
            task.files_to_touch = list(files_to_touch or [])
            task.touch()
            session.active_step_id = short_id("step")
            session.current_state = FocusState.EXECUTING
            session.intent_filed = True
            session.is_verified = False

            self._log(sm.REPORT_INTENT, task.task_id, intent[:INTENT_LOG_CHARS])
            await self._persist()
            return StepResult(task.task_id, session.active_step_id, session.current_state)

    async def checkpoint(
        self,
        summary: str,
        completed_checklist_ids: Iterable[str] | None = None,
    ) -> CheckpointResult:
        """Close the current step.

        Marks checklist items done, writes an audit note when files changed,
        re-baselines and releases the task's claims, and returns to IDLE. The
        active task is cleared once its checklist is complete.

        Raises:
            IntentMissingError: No intent was filed for this step, whatever
                the current state.
            StateTransitionError: Not EXECUTING.
        """
        async with self._lock:
            session = self.state.session
            if not session.intent_filed:
                raise IntentMissingError(session.current_state, sm.allowed_states(sm.CHECKPOINT))
            sm.validate_transition(sm.CHECKPOINT, session.current_state)
            task = self._require_task()

            git_note_written = False
            if await self._vcs.is_repo():
                changed = await self._vcs.changed_files()
                if changed:
                    record = AuditRecord(
                        task_id=task.task_id,
                        title=task.title,
                        intent=task.last_intent or "",
                        summary=summary,
                        timestamp=utc_now_iso(),
                        files_changed=changed,
                    )
                    git_note_written = await self._audit.write_note(record)

            patterns = [claim.path for claim in task.claims]
            current = await self._integrity.calculate_file_hashes(patterns) if patterns else {}

            # panic() may have run during the awaits above
            self._check_not_panicked(sm.CHECKPOINT)

            done_ids = set(completed_checklist_ids or [])
            for item in task.checklist:
                if item.id in done_ids:
                    item.status = "done"
            task.touch()

            self._replace_baseline(patterns, current)
            task.claims = []
            self._refresh_claim_cache()

            session.current_state = FocusState.IDLE
            session.active_step_id = None
            session.intent_filed = False
            session.is_verified = False
            complete = task.all_done
            if complete:
                session.active_task_id = None

            self._log(sm.CHECKPOINT, task.task_id, summary)
            await self._persist()
            return CheckpointResult(
                task_id=task.task_id,
                completed_items=task.completed_items,
                total_items=task.total_items,
                git_note_written=git_note_written,
                task_complete=complete,
            )

    async def verify(self) -> VerifyResult:
        """Run the task's test command; failures are reported, not raised."""
        async with self._lock:
            session = self.state.session
            sm.validate_transition(sm.VERIFY, session.current_state)
            task = self._require_task()

            verify_config = self.config.verify
            command = task.test_command or verify_config.default_command
            result = await self._executor.execute(
                command,
                cwd=self._project_path,
                timeout=verify_config.timeout,
                output_limit=verify_config.output_limit,
            )
            self._check_not_panicked(sm.VERIFY)
            session.is_verified = result.success

            outcome = "PASS" if result.success else f"FAIL ({result.status})"
            self._log(sm.VERIFY, task.task_id, f"{outcome}: {command}")
            await self._persist()
            return VerifyResult(
                command=command,
                success=result.success,
                exit_code=result.exit_code,
                stdout=result.stdout,
                stderr=result.stderr,
                status=result.status,
                duration_ms=int(result.duration_ms),
            )

    async def explain_change(self) -> ExplainResult:
        async with self._lock:
            session = self.state.session
            sm.validate_transition(sm.EXPLAIN_CHANGE, session.current_state)
            task = self._require_task()

            changed = await self._vcs.changed_files()
            changed_count = len(changed)
            if changed_count > MAX_EXPLAINED_CHANGES:
                changed = changed[:MAX_EXPLAINED_CHANGES] + ["..."]
            diff_summary = await self._vcs.diff_stat()

            if task.test_command:
                verification = f"Run: `{task.test_command}`"
            else:
                verification = "No test command configured. Set one with dg_set_test_command."

            self._log(sm.EXPLAIN_CHANGE, task.task_id, f"{changed_count} files changed")
            return ExplainResult(
                intent=task.last_intent or "No intent filed",
                changes=changed,
                verification=verification,
                diff_summary=diff_summary,
            )

    async def set_test_command(self, command: str) -> Task:
        async with self._lock:
            task = self._require_task()
            task.test_command = command
            task.touch()
            self._log(sm.SET_TEST_COMMAND, task.task_id, command)
            await self._persist()
            return task

    # Scope -----------------------------------------------------------------

    async def claim_scope(self, paths: Iterable[str], exclusive: bool = False) -> ClaimResult:
        """Claim glob patterns for the active task, all or nothing.

        A refused request changes nothing, not even the log.
        """
        async with self._lock:
            task = self._require_task()
            requested = list(paths)
            session = self.state.session

            conflicts = self._coordinator.find_conflicts(
                requested, task.task_id, session.active_claims, self.state.tasks
            )
            if conflicts:
                log.info(
                    "Claim %s by %s refused: %d conflict(s)",
                    requested,
                    task.task_id,
                    len(conflicts),
                )
                return ClaimResult(granted=False, conflicts=conflicts)

            claimed = [
                ScopeClaim(path=path, exclusive=exclusive, owner_task_id=task.task_id)
                for path in requested
            ]
            task.claims.extend(claimed)
            task.touch()
            self._refresh_claim_cache()
            await self._refresh_hashes([claim.path for claim in task.claims])

            mode = "exclusive" if exclusive else "shared"
            self._log(sm.CLAIM_SCOPE, task.task_id, f"{mode}: {', '.join(requested)}")
            await self._persist()
            return ClaimResult(granted=True, claimed=claimed)

    async def delegate_task(self, title: str, goal: str, sub_scope: Iterable[str]) -> Task:
        """Create a sub-task whose scope lies inside the parent's claims.

        Containment is only enforced when the parent holds claims.

        Raises:
            StateTransitionError: Not EXECUTING.
            DelegationError: Some child pattern is outside the parent's claims.
        """
        async with self._lock:
            session = self.state.session
            sm.validate_transition(sm.DELEGATE, session.current_state)
            parent = self._require_task()
            child_scope = list(sub_scope)

            parent_patterns = [claim.path for claim in parent.claims]
            if parent_patterns:
                uncovered = self._coordinator.uncovered_paths(parent_patterns, child_scope)
                if uncovered:
                    raise DelegationError(uncovered)

            child = Task(
                task_id=short_id("sub"),
                title=title,
                goal=goal,
                allowed_scopes=child_scope or ["**"],
                strictness=parent.strictness,
                parent_task_id=parent.task_id,
            )
            self.state.tasks[child.task_id] = child
            parent.sub_task_ids.append(child.task_id)
            parent.touch()

            self._log(sm.DELEGATE, parent.task_id, f"{child.task_id}: {title}")
            await self._persist()
            return child

    # Analysis --------------------------------------------------------------

    async def analyze_risk(self, path: str) -> RiskResult:
        """Score ``path`` and raise the active task's risk score to match."""
        async with self._lock:
            result = await self._risk.calculate_risk(path)
            task = self.state.active_task()
            if task is not None:
                task.risk_score = max(task.risk_score or 0, result.score)
                task.touch()
            self._log(
                sm.ANALYZE_RISK,
                task.task_id if task else None,
                f"{path}: {result.score} ({result.reason})",
            )
            await self._persist()
            return result

    async def health_check(self) -> HealthReport:
        async with self._lock:
            session = self.state.session
            return await self._integrity.health_check(
                [claim.path for claim in session.active_claims],
                session.last_known_file_hashes,
            )

    async def generate_handoff(self) -> HandoffPacket:
        async with self._lock:
            session = self.state.session
            task = self.state.active_task()
            if task is None:
                task_id = "None"
                plan_summary = "No active task."
            else:
                task_id = task.task_id
                plan_summary = (
                    f"{task.title}: {task.goal} "
                    f"({task.completed_items}/{task.total_items} items done)"
                )
            last_steps = [
                f"[{entry.action}] {entry.details or ''}".rstrip()
                for entry in self.state.logs.recent(HANDOFF_STEPS)
            ]
            return HandoffPacket(
                task_id=task_id,
                status=session.current_state.value,
                plan_summary=plan_summary,
                active_claims=[claim.path for claim in session.active_claims],
                last_steps=last_steps,
                verification_status="VERIFIED" if session.is_verified else "PENDING",
            )

    async def get_timeline(self, limit: int = 10) -> list[AuditRecord]:
        return await self._audit.timeline(limit)

    def status(self) -> StatusReport:
        session = self.state.session
        task = self.state.active_task()
        return StatusReport(
            initialized=self.initialized,
            state=session.current_state,
            task_id=task.task_id if task else None,
            task_title=task.title if task else None,
            step_id=session.active_step_id,
            intent_filed=session.intent_filed,
            is_verified=session.is_verified,
            completed_items=task.completed_items if task else 0,
            total_items=task.total_items if task else 0,
            task_count=len(self.state.tasks),
            claim_count=len(session.active_claims),
            log_count=len(self.state.logs),
            claims=[claim.path for claim in session.active_claims],
        )

    # Safety ----------------------------------------------------------------

    async def panic(self, reason: str) -> HelpPacket:
        """Stop everything and ask for a human. Does not wait for the lock."""
        session = self.state.session
        sm.validate_transition(sm.PANIC, session.current_state)
        session.current_state = FocusState.PANIC
        task = self.state.active_task()

        self._log(sm.PANIC, task.task_id if task else None, reason)
        log.warning("PANIC: %s", reason)
        await self._persist()
        return HelpPacket(
            goal=task.goal if task else None,
            recent_logs=self.state.logs.recent(PANIC_LOG_ENTRIES),
            reason=reason,
            state=session.current_state,
        )
