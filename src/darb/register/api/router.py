"""FastAPI router for the asset register.

Endpoints:
    GET    /api/register/me                               - Caller and permissions
    GET    /api/register/stations                         - List stations
    GET    /api/register/stations/print                   - Print all stations
    GET    /api/register/stations/{id}/report             - Grouped station report
    GET    /api/register/stations/{id}/report/print       - Print station report
    GET    /api/register/stations/{id}/report/export      - Download CSV/XLSX
    GET    /api/register/stations/{id}/assets             - Station-scoped assets
    PUT    /api/register/stations/{id}                    - Update station (admin)
    DELETE /api/register/stations/{id}                    - Delete station (admin)
    GET    /api/register/departments/print               - Print all departments
    GET    /api/register/assets/{id}/batches/summary      - Batch valuation
    POST   /api/register/assets/{id}/batches              - Add purchase batch
    GET    /api/register/accounts                         - List accounts (admin)
    POST   /api/register/accounts                         - Create account (admin)
    DELETE /api/register/accounts/{id}                    - Delete account (admin)
    GET    /api/register/analytics                        - Dashboard metrics
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from fastapi.responses import HTMLResponse, StreamingResponse

from ...api.error_sanitizer import sanitize_error_message
from ...api.exceptions import RegisterError
from ..adapters.export import EXPORT_FORMATS
from ..domain.entities import AccountDraft, BatchDraft, CurrentUser, StationUpdate
from ..domain.ports import IRegisterRepository, IReportExporter, IReportRenderer
from ..use_cases import (
    AddBatchUseCase,
    CreateAccountUseCase,
    DeleteAccountUseCase,
    DeleteStationUseCase,
    GetAnalyticsUseCase,
    GetBatchSummaryUseCase,
    GetStationAssetsUseCase,
    GetStationReportUseCase,
    PrintDirectoryUseCase,
    UpdateStationUseCase,
)
from .dependencies import (
    get_current_user,
    get_exporter,
    get_renderer,
    get_repository,
    http_error_for,
    require_admin,
    require_assigner,
    require_viewer,
)
from .schemas import (
    AccountCreateRequest,
    AccountDTO,
    AnalyticsResponse,
    BatchCreateRequest,
    BatchDTO,
    BatchSummaryResponse,
    CurrentUserResponse,
    StationAssetsResponse,
    StationDTO,
    StationReportResponse,
    StationUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/register", tags=["Asset Register"])

MEDIA_TYPES = {
    "csv": "text/csv; charset=utf-8",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


@router.get("/me", response_model=CurrentUserResponse)
async def me(user: CurrentUser = Depends(get_current_user)):
    """The authenticated caller and what they are allowed to do."""
    return CurrentUserResponse(
        authenticated=user.authenticated,
        username=user.username,
        role=user.role,
        can_view=user.can_view,
        can_assign=user.can_assign,
        is_admin=user.is_admin,
    )


# ========== Stations ==========


@router.get("/stations", response_model=list[StationDTO])
async def list_stations(
    repository: IRegisterRepository = Depends(get_repository),
    _user: CurrentUser = Depends(require_viewer),
):
    try:
        stations = await repository.list_stations()
    except RegisterError as e:
        raise http_error_for(e, "Failed to load stations")
    return [StationDTO.model_validate(s) for s in stations]


@router.get("/stations/print", response_class=HTMLResponse)
async def print_stations(
    repository: IRegisterRepository = Depends(get_repository),
    renderer: IReportRenderer = Depends(get_renderer),
    _user: CurrentUser = Depends(require_viewer),
):
    """Printable table of every station (ID, Name, Location, Manager, Assets)."""
    use_case = PrintDirectoryUseCase(repository, renderer)
    try:
        html = await use_case.stations()
    except RegisterError as e:
        raise http_error_for(e, "Failed to print stations")
    return HTMLResponse(content=html)


@router.get("/stations/{station_id}/report", response_model=StationReportResponse)
async def get_station_report(
    station_id: str,
    repository: IRegisterRepository = Depends(get_repository),
    _user: CurrentUser = Depends(require_viewer),
):
    """Assets assigned to a station, grouped Asset -> Batch -> Item.

    Returns the grouped hierarchy and the total value of the items listed.
    Unknown stations return 404.
    """
    use_case = GetStationReportUseCase(repository)
    try:
        report = await use_case.execute(station_id)
    except RegisterError as e:
        raise http_error_for(e, "Failed to build station report")
    return StationReportResponse.from_report(report)


@router.get("/stations/{station_id}/report/print", response_class=HTMLResponse)
async def print_station_report(
    station_id: str,
    repository: IRegisterRepository = Depends(get_repository),
    renderer: IReportRenderer = Depends(get_renderer),
    _user: CurrentUser = Depends(require_viewer),
):
    """Standalone print document for a station report."""
    use_case = GetStationReportUseCase(repository)
    try:
        report = await use_case.execute(station_id)
    except RegisterError as e:
        raise http_error_for(e, "Failed to build station report")
    return HTMLResponse(content=renderer.render_station_report(report))


@router.get("/stations/{station_id}/report/export")
async def export_station_report(
    station_id: str,
    fmt: str = Query("xlsx", alias="format", description="Export format: csv or xlsx"),
    repository: IRegisterRepository = Depends(get_repository),
    exporter: IReportExporter = Depends(get_exporter),
    _user: CurrentUser = Depends(require_viewer),
):
    """Download the station report as one row per item.

    Formats:
    - csv: UTF-8 with BOM
    - xlsx: Excel workbook with title, total, and formatted columns
    """
    fmt = fmt.lower()
    if fmt not in EXPORT_FORMATS:
        raise HTTPException(
            status_code=400,
            detail=sanitize_error_message(
                f"Unsupported format '{fmt}'. Use one of: {', '.join(EXPORT_FORMATS)}"
            ),
        )

    use_case = GetStationReportUseCase(repository)
    try:
        report = await use_case.execute(station_id)
    except RegisterError as e:
        raise http_error_for(e, "Failed to build station report")

    content = await exporter.export(report, fmt)
    filename = f"station_{report.station_id}_report.{fmt}"

    return StreamingResponse(
        iter([content]),
        media_type=MEDIA_TYPES[fmt],
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.get("/stations/{station_id}/assets", response_model=StationAssetsResponse)
async def get_station_assets(
    station_id: str,
    repository: IRegisterRepository = Depends(get_repository),
    _user: CurrentUser = Depends(require_viewer),
):
    """Assets with assignments at this station and their remaining stock."""
    use_case = GetStationAssetsUseCase(repository)
    try:
        result = await use_case.execute(station_id)
    except RegisterError as e:
        raise http_error_for(e, "Failed to load station assets")
    return StationAssetsResponse.from_result(result)


@router.put("/stations/{station_id}", response_model=StationDTO)
async def update_station(
    station_id: str,
    request: StationUpdateRequest,
    repository: IRegisterRepository = Depends(get_repository),
    user: CurrentUser = Depends(require_admin),
):
    use_case = UpdateStationUseCase(repository)
    update = StationUpdate(
        name=request.name,
        location=request.location,
        manager=request.manager,
        contact_number=request.contact_number,
        remarks=request.remarks,
    )
    try:
        station = await use_case.execute(station_id, update)
    except RegisterError as e:
        raise http_error_for(e, "Failed to update station")

    logger.info(f"Station {station_id} updated by {user.username}")
    return StationDTO.model_validate(station)


@router.delete("/stations/{station_id}", status_code=204)
async def delete_station(
    station_id: str,
    repository: IRegisterRepository = Depends(get_repository),
    user: CurrentUser = Depends(require_admin),
):
    try:
        await DeleteStationUseCase(repository).execute(station_id)
    except RegisterError as e:
        raise http_error_for(e, "Failed to delete station")

    logger.info(f"Station {station_id} deleted by {user.username}")
    return Response(status_code=204)


# ========== Departments ==========


@router.get("/departments/print", response_class=HTMLResponse)
async def print_departments(
    repository: IRegisterRepository = Depends(get_repository),
    renderer: IReportRenderer = Depends(get_renderer),
    _user: CurrentUser = Depends(require_viewer),
):
    """Printable table of every department (ID, Name, Manager, Employees, Total Value)."""
    use_case = PrintDirectoryUseCase(repository, renderer)
    try:
        html = await use_case.departments()
    except RegisterError as e:
        raise http_error_for(e, "Failed to print departments")
    return HTMLResponse(content=html)


# ========== Assets and Batches ==========


@router.get("/assets/{asset_id}/batches/summary", response_model=BatchSummaryResponse)
async def get_batch_summary(
    asset_id: str,
    repository: IRegisterRepository = Depends(get_repository),
    _user: CurrentUser = Depends(require_viewer),
):
    """Purchase batches of an asset with total, remaining, and assigned value."""
    try:
        summary = await GetBatchSummaryUseCase(repository).execute(asset_id)
    except RegisterError as e:
        raise http_error_for(e, "Failed to load batches")
    return BatchSummaryResponse.from_summary(summary)


@router.post("/assets/{asset_id}/batches", response_model=BatchDTO, status_code=201)
async def add_batch(
    asset_id: str,
    request: BatchCreateRequest,
    repository: IRegisterRepository = Depends(get_repository),
    user: CurrentUser = Depends(require_assigner),
):
    """Record a new purchase batch for an asset.

    Rules:
    - purchase_price >= 0
    - quantity >= 1
    - a blank batch name is stored as null
    """
    draft = BatchDraft(
        purchase_price=request.purchase_price,
        quantity=request.quantity,
        purchase_date=request.purchase_date,
        batch_name=request.batch_name,
        remarks=request.remarks,
    )
    try:
        batch = await AddBatchUseCase(repository).execute(asset_id, draft)
    except RegisterError as e:
        raise http_error_for(e, "Failed to add batch")

    logger.info(f"Batch added to asset {asset_id} by {user.username}")
    return BatchDTO.from_entity(batch)


# ========== Accounts ==========


@router.get("/accounts", response_model=list[AccountDTO])
async def list_accounts(
    repository: IRegisterRepository = Depends(get_repository),
    _user: CurrentUser = Depends(require_admin),
):
    try:
        accounts = await repository.list_accounts()
    except RegisterError as e:
        raise http_error_for(e, "Failed to load accounts")
    return [AccountDTO.from_entity(a) for a in accounts]


@router.post("/accounts", response_model=AccountDTO, status_code=201)
async def create_account(
    request: AccountCreateRequest,
    repository: IRegisterRepository = Depends(get_repository),
    user: CurrentUser = Depends(require_admin),
):
    draft = AccountDraft(username=request.username, password=request.password, role=request.role)
    try:
        account = await CreateAccountUseCase(repository).execute(draft)
    except RegisterError as e:
        raise http_error_for(e, "Failed to create account")

    logger.info(f"Account {account.username} created by {user.username}")
    return AccountDTO.from_entity(account)


@router.delete("/accounts/{account_id}", status_code=204)
async def delete_account(
    account_id: str,
    repository: IRegisterRepository = Depends(get_repository),
    user: CurrentUser = Depends(require_admin),
):
    try:
        await DeleteAccountUseCase(repository).execute(account_id)
    except RegisterError as e:
        raise http_error_for(e, "Failed to delete account")

    logger.info(f"Account {account_id} deleted by {user.username}")
    return Response(status_code=204)


# ========== Analytics ==========


@router.get("/analytics", response_model=AnalyticsResponse)
async def get_analytics(
    repository: IRegisterRepository = Depends(get_repository),
    _user: CurrentUser = Depends(require_viewer),
):
    """Dashboard metrics: totals, top stations, employees, and assets."""
    try:
        metrics = await GetAnalyticsUseCase(repository).execute()
    except RegisterError as e:
        raise http_error_for(e, "Failed to compute analytics")
    return AnalyticsResponse.from_metrics(metrics)


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "asset-register"}
