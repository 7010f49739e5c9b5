"""FastAPI backend over the ledger for back-office screens."""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import structlog
from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sportsbook.api.schemas import (
    AmountRequest,
    CreateBetRequest,
    CreateCustomerRequest,
    CreateEventRequest,
    CreditWinningsRequest,
    CreditWinningsResponse,
    DeleteEventResponse,
    ErrorResponse,
    HealthResponse,
    LegOutcomeRequest,
    NoteRequest,
    PayoutQuoteRequest,
    PayoutQuoteResponse,
    QuoteResponse,
    SettleBetRequest,
    UpdateEventRequest,
    UpdateSelectionRequest,
)
from sportsbook.config import get_settings
from sportsbook.ledger import Ledger, LedgerError, OpResult
from sportsbook.models import Bet, BetStatus, Customer, Event, EventStatus, Selection, SelectionInput, Transaction
from sportsbook.reports import EmployeeStats, ReportData, employee_stats, generate_report
from sportsbook.storage.db import get_connection, init_schema
from sportsbook.storage.ledger_store import load_ledger, save_ledger

log = structlog.get_logger(__name__)

# Set by run_api() before uvicorn imports the app.
_config_profile: str | None = None
_config_dir: Path | None = None
_db_path: str | None = None

_STATUS_BY_CODE = {
    "validation_error": 400,
    "invalid_composition": 400,
    "not_found": 404,
    "invalid_state": 409,
}


class LedgerHTTPError(Exception):
    """Carries a LedgerError out of a route to the exception handler."""

    def __init__(self, error: LedgerError) -> None:
        super().__init__(error.message)
        self.error = error


def _error_json(code: str, message: str, status_code: int = 404) -> JSONResponse:
    """Return consistent error JSON: { detail, code }."""
    return JSONResponse(
        status_code=status_code,
        content={"detail": message, "code": code},
    )


def _ledger(request: Request) -> Ledger:
    return request.app.state.ledger


def _persist(request: Request) -> None:
    """Write the ledger back to DuckDB when the app is backed by a database."""
    db_path = request.app.state.db_path
    if not db_path:
        return
    ledger = _ledger(request)
    with ledger.lock:
        conn = get_connection(db_path)
        try:
            init_schema(conn)
            save_ledger(conn, ledger)
        finally:
            conn.close()


def _commit(request: Request, result: OpResult) -> Any:
    """Unwrap a mutation result: persist on success, raise for the error handler otherwise."""
    if not result.ok:
        raise LedgerHTTPError(result.error)
    _persist(request)
    return result.value


def _query(fn, *args, **kwargs) -> Any:
    try:
        return fn(*args, **kwargs)
    except LedgerError as e:
        raise LedgerHTTPError(e) from None


def create_app(ledger: Ledger | None = None, db_path: str | None = None) -> FastAPI:
    """Build the app. Without a ledger, the lifespan loads one from configured storage."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.ledger is None:
            settings = get_settings(_config_profile, _config_dir)
            app.state.db_path = _db_path or settings.db_path
            conn = get_connection(app.state.db_path)
            try:
                init_schema(conn)
                app.state.ledger = load_ledger(
                    conn, Ledger(settings.odds_config, refund_voided_wagers=settings.refund_voided_wagers)
                )
            finally:
                conn.close()
            log.info("api_ledger_loaded", db_path=app.state.db_path)
        yield

    app = FastAPI(title="Sportsbook API", version="0.1.0", lifespan=lifespan)
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])
    app.state.ledger = ledger
    app.state.db_path = db_path

    @app.exception_handler(LedgerHTTPError)
    async def _ledger_error(_: Request, exc: LedgerHTTPError) -> JSONResponse:
        err = exc.error
        return _error_json(err.code, err.message, _STATUS_BY_CODE.get(err.code, 400))

    _register_routes(app)
    return app


def _register_routes(app: FastAPI) -> None:
    errors = {400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}}

    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(status="ok")

    # --- Events ---

    @app.get("/events", response_model=list[Event])
    def events_list(request: Request, status: EventStatus | None = None) -> list[Event]:
        return _ledger(request).list_events(status)

    @app.post("/events", response_model=Event, status_code=201, responses=errors)
    def events_create(request: Request, body: CreateEventRequest) -> Event:
        return _commit(
            request,
            _ledger(request).create_event(
                body.name,
                body.category,
                body.selections,
                status=body.status,
                start_time=body.start_time,
                end_time=body.end_time,
            ),
        )

    @app.get("/events/{event_id}", response_model=Event, responses=errors)
    def events_get(request: Request, event_id: str) -> Event:
        return _query(_ledger(request).get_event, event_id)

    @app.patch("/events/{event_id}", response_model=Event, responses=errors)
    def events_update(request: Request, event_id: str, body: UpdateEventRequest) -> Event:
        changes = body.model_dump(exclude_none=True)
        return _commit(request, _ledger(request).update_event(event_id, **changes))

    @app.delete("/events/{event_id}", response_model=DeleteEventResponse, responses=errors)
    def events_delete(request: Request, event_id: str) -> DeleteEventResponse:
        orphaned = _commit(request, _ledger(request).delete_event(event_id))
        return DeleteEventResponse(event_id=event_id, orphaned_bets=orphaned)

    @app.post("/events/{event_id}/selections", response_model=Selection, status_code=201, responses=errors)
    def selections_add(request: Request, event_id: str, body: SelectionInput) -> Selection:
        return _commit(request, _ledger(request).add_selection(event_id, body.name, body.odds))

    @app.patch("/events/{event_id}/selections/{selection_id}", response_model=Selection, responses=errors)
    def selections_update(request: Request, event_id: str, selection_id: str, body: UpdateSelectionRequest) -> Selection:
        return _commit(
            request, _ledger(request).update_selection(event_id, selection_id, name=body.name, status=body.status)
        )

    @app.delete("/events/{event_id}/selections/{selection_id}", response_model=Selection, responses=errors)
    def selections_remove(request: Request, event_id: str, selection_id: str) -> Selection:
        return _commit(request, _ledger(request).remove_selection(event_id, selection_id))

    @app.get("/events/{event_id}/selections/{selection_id}/quote", response_model=QuoteResponse, responses=errors)
    def selections_quote(request: Request, event_id: str, selection_id: str) -> QuoteResponse:
        odds = _query(_ledger(request).quote, event_id, selection_id)
        return QuoteResponse(event_id=event_id, selection_id=selection_id, odds=odds)

    # --- Customers ---

    @app.get("/customers", response_model=list[Customer])
    def customers_list(request: Request) -> list[Customer]:
        return _ledger(request).list_customers()

    @app.post("/customers", response_model=Customer, status_code=201, responses=errors)
    def customers_create(request: Request, body: CreateCustomerRequest) -> Customer:
        return _commit(
            request, _ledger(request).create_customer(body.name, balance=body.balance, credit_limit=body.credit_limit)
        )

    @app.get("/customers/{customer_id}", response_model=Customer, responses=errors)
    def customers_get(request: Request, customer_id: str) -> Customer:
        return _query(_ledger(request).get_customer, customer_id)

    @app.post("/customers/{customer_id}/adjust", response_model=Transaction, responses=errors)
    def customers_adjust(request: Request, customer_id: str, body: AmountRequest) -> Transaction:
        return _commit(request, _ledger(request).adjust_balance(customer_id, body.amount, note=body.note))

    @app.post("/customers/{customer_id}/payout", response_model=Transaction, responses=errors)
    def customers_payout(request: Request, customer_id: str, body: AmountRequest) -> Transaction:
        return _commit(request, _ledger(request).payout(customer_id, body.amount))

    @app.post("/customers/{customer_id}/credit", response_model=CreditWinningsResponse, responses=errors)
    def customers_credit(request: Request, customer_id: str, body: CreditWinningsRequest) -> CreditWinningsResponse:
        total = _commit(request, _ledger(request).credit_winnings(customer_id, body.bet_ids))
        return CreditWinningsResponse(customer_id=customer_id, credited=total)

    @app.get("/customers/{customer_id}/transactions", response_model=list[Transaction], responses=errors)
    def customers_transactions(request: Request, customer_id: str) -> list[Transaction]:
        return _query(_ledger(request).transactions, customer_id)

    # --- Bets ---

    @app.get("/bets", response_model=list[Bet])
    def bets_list(
        request: Request,
        start_ts: int | None = Query(None),
        end_ts: int | None = Query(None),
        customer_id: str | None = Query(None),
        employee_id: str | None = Query(None),
        status: BetStatus | None = Query(None),
        order: str = Query("desc", pattern="^(asc|desc)$"),
        limit: int = Query(100, ge=1, le=1000),
        offset: int = Query(0, ge=0),
    ) -> list[Bet]:
        rows = _ledger(request).list_bets(
            start_ts,
            end_ts,
            customer_id=customer_id,
            employee_id=employee_id,
            status=status,
            descending=order == "desc",
        )
        return rows[offset : offset + limit]

    @app.post("/bets", response_model=Bet, status_code=201, responses=errors)
    def bets_create(request: Request, body: CreateBetRequest) -> Bet:
        return _commit(
            request,
            _ledger(request).create_bet(
                body.customer_id, body.employee_id, body.bet_type, body.wager_amount, body.legs
            ),
        )

    @app.get("/bets/{bet_id}", response_model=Bet, responses=errors)
    def bets_get(request: Request, bet_id: str) -> Bet:
        return _query(_ledger(request).get_bet, bet_id)

    @app.post("/bets/{bet_id}/settle", response_model=Bet, responses=errors)
    def bets_settle(request: Request, bet_id: str, body: SettleBetRequest) -> Bet:
        return _commit(
            request, _ledger(request).settle(bet_id, body.status, credit_to_balance=body.credit_to_balance)
        )

    @app.patch("/bets/{bet_id}/selections/{selection_id}", response_model=Bet, responses=errors)
    def bets_leg_outcome(request: Request, bet_id: str, selection_id: str, body: LegOutcomeRequest) -> Bet:
        return _commit(request, _ledger(request).update_selection_outcome(bet_id, selection_id, body.status))

    @app.post("/bets/{bet_id}/notes", response_model=Bet, responses=errors)
    def bets_note(request: Request, bet_id: str, body: NoteRequest) -> Bet:
        return _commit(request, _ledger(request).annotate_bet(bet_id, body.note))

    @app.delete("/bets/{bet_id}", response_model=Bet, responses=errors)
    def bets_delete(request: Request, bet_id: str) -> Bet:
        return _commit(request, _ledger(request).delete_bet(bet_id))

    @app.post("/quote/payout", response_model=PayoutQuoteResponse, responses=errors)
    def quote_payout(request: Request, body: PayoutQuoteRequest) -> PayoutQuoteResponse:
        payout = _query(_ledger(request).quote_payout, body.wager_amount, body.legs, body.bet_type)
        return PayoutQuoteResponse(potential_payout=payout)

    # --- Reports ---

    @app.get("/reports/summary", response_model=ReportData)
    def reports_summary(
        request: Request,
        start_ts: int = Query(..., description="Window start, ms epoch"),
        end_ts: int = Query(..., description="Window end, ms epoch"),
    ) -> ReportData:
        ledger = _ledger(request)
        return generate_report(ledger.list_bets(), ledger.list_customers(), start_ts, end_ts)

    @app.get("/reports/employees", response_model=list[EmployeeStats])
    def reports_employees(request: Request) -> list[EmployeeStats]:
        return employee_stats(_ledger(request).list_bets())


app = create_app()


def run_api(
    host: str = "127.0.0.1",
    port: int = 8000,
    profile: str | None = None,
    config_dir: Path | None = None,
    db_path: str | None = None,
) -> None:
    global _config_profile, _config_dir, _db_path
    _config_profile = profile
    _config_dir = config_dir
    _db_path = db_path
    import uvicorn

    uvicorn.run("sportsbook.api.main:app", host=host, port=port, reload=False)
