# api.py
import asyncio
import os
from contextlib import asynccontextmanager
from typing import List, Optional, Union

from dotenv import load_dotenv
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from sentinel.alerts.evaluator import evaluate_transfer_event
from sentinel.chains import DEFAULT_CHAIN
from sentinel.core.analyze import compute_full_score
from sentinel.core.models import TransferEvent
from sentinel.scoring.quick import compute_quick_score
from sentinel.services import build_services, sweep_caches_forever
from sentinel.utils.addr import normalize_evm_address
from sentinel.utils.logs import get_logger, setup_logging
from sentinel.utils.ratelimit import set_default_qps

load_dotenv()
setup_logging()
log = get_logger("sentinel.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    chain = os.getenv("SENTINEL_CHAIN", DEFAULT_CHAIN)
    app.state.services = build_services(chain)
    log.info(f"Services ready for chain={chain}")
    sweeper = asyncio.create_task(sweep_caches_forever(app.state.services))
    yield
    sweeper.cancel()
    await asyncio.gather(sweeper, return_exceptions=True)


app = FastAPI(title="Rug Sentinel API", version="0.4.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

api = APIRouter(prefix="/api")


def get_services(request: Request):
    return request.app.state.services


def _address(raw: str) -> str:
    try:
        return normalize_evm_address(raw)
    except ValueError as ve:
        raise HTTPException(status_code=400, detail=str(ve))


def _optional_address(raw: Optional[str]) -> Optional[str]:
    return _address(raw) if raw else None


class BatchJob(BaseModel):
    addresses: List[str]
    quick: bool = False
    concurrency: int = 2
    dexscreener_qps: Optional[float] = None


class TransferIn(BaseModel):
    token_address: str
    from_address: str
    to_address: str
    value: Union[int, str]
    total_supply: Union[int, str]
    block_number: Optional[int] = None


class WatchIn(BaseModel):
    address: str
    label: Optional[str] = None
    creator: Optional[str] = None


class LabelIn(BaseModel):
    label: str = Field(..., max_length=120)


@api.get("/health")
async def health():
    return {"ok": True}


@api.get("/score/{address}/quick")
async def quick_score(address: str, creator: Optional[str] = None, services=Depends(get_services)):
    token = _address(address)
    result = await compute_quick_score(services.client, token, _optional_address(creator))
    await services.stats.increment_tokens_scanned()
    return result.to_dict()


@api.get("/score/{address}")
async def full_score(
    address: str,
    creator: Optional[str] = None,
    pool: Optional[str] = None,
    market_cap: Optional[float] = Query(default=None, ge=0, allow_inf_nan=False),
    fresh: bool = False,
    services=Depends(get_services),
):
    token = _address(address)
    result = await compute_full_score(
        services,
        token,
        creator=_optional_address(creator),
        pool=_optional_address(pool),
        market_cap_usd=market_cap,
        use_cache=not fresh,
    )
    await services.stats.increment_tokens_scanned()
    log.info(f"/score {token} -> {result.score} {result.tier.value}")
    return result.to_dict()


@api.post("/batch")
async def batch(job: BatchJob, services=Depends(get_services)):
    if not job.addresses:
        raise HTTPException(status_code=400, detail="addresses list is empty")
    if job.dexscreener_qps:
        set_default_qps(job.dexscreener_qps)

    sem = asyncio.Semaphore(max(1, min(8, job.concurrency)))

    async def work(raw: str):
        try:
            token = normalize_evm_address(raw)
        except ValueError as ve:
            return {"address": raw, "error": str(ve)}
        async with sem:
            if job.quick:
                res = await compute_quick_score(services.client, token)
            else:
                res = await compute_full_score(services, token)
        return res.to_dict()

    out = await asyncio.gather(*[work(a) for a in job.addresses])
    await services.stats.increment_tokens_scanned(sum(1 for r in out if "error" not in r))
    return {"count": len(out), "results": out}


@api.post("/alerts/evaluate")
async def evaluate(transfer: TransferIn, services=Depends(get_services)):
    event = TransferEvent(
        token_address=_address(transfer.token_address),
        from_address=_address(transfer.from_address),
        to_address=_address(transfer.to_address),
        value=transfer.value,
        block_number=transfer.block_number,
    )
    alert = await evaluate_transfer_event(services.score_cache, event, transfer.total_supply)
    if alert is not None:
        await services.stats.increment_rugs_detected()
    return {"alert": alert.to_dict() if alert else None}


@api.get("/watchlist")
async def watchlist(services=Depends(get_services)):
    return {"items": await services.watchlist.list()}


@api.post("/watchlist")
async def watch(item: WatchIn, services=Depends(get_services)):
    token = _address(item.address)
    return await services.watchlist.add(token, item.label, _optional_address(item.creator))


@api.delete("/watchlist/{address}")
async def unwatch(address: str, services=Depends(get_services)):
    token = _address(address)
    if not await services.watchlist.remove(token):
        raise HTTPException(status_code=404, detail="not on watchlist")
    return {"removed": token.lower()}


@api.patch("/watchlist/{address}")
async def relabel(address: str, body: LabelIn, services=Depends(get_services)):
    token = _address(address)
    if not await services.watchlist.update_label(token, body.label):
        raise HTTPException(status_code=404, detail="not on watchlist")
    return {"address": token.lower(), "label": body.label}


@api.get("/stats")
async def stats(services=Depends(get_services)):
    return (await services.stats.get_stats()).to_dict()


app.include_router(api)
