import asyncio
from contextlib import asynccontextmanager
import logging
from pathlib import Path
from typing import Optional

import typer
from gidgethub import aiohttp as gh_aiohttp
import aiohttp
import cachetools

from stalegreen import config
from stalegreen.github import (
    InvalidConfig,
    get_access_token,
    get_config_from_repo,
    parse_config,
)
from stalegreen.github.api import API
from stalegreen.logger import get_log_handlers
from stalegreen.metric import push_metrics, worker_pass_count
from stalegreen.policy import StaleGreenCI
from stalegreen.runner import PolicyRunner


logging.basicConfig(
    format="%(asctime)s %(name)s %(levelname)s - %(message)s", level=logging.INFO
)
logger = logging.getLogger("stalegreen")


app = typer.Typer()
httpcache = cachetools.LRUCache(maxsize=500)


def make_runner(dry_run: bool) -> PolicyRunner:
    return PolicyRunner([StaleGreenCI(bot_name=config.BOT_NAME)], dry_run=dry_run)


async def job_loop(runner: PolicyRunner):
    logger.info("Entering job loop for %d repositories", len(config.REPOSITORIES))
    while True:
        try:
            async with installation_client(config.GITHUB_INSTALLATION_ID) as gh:
                api = API(gh, config.GITHUB_INSTALLATION_ID)
                for repo in config.REPOSITORIES:
                    await runner.process_repository(api, f"/repos/{repo}")
                logger.info("Finished pass, API calls: %d", api.call_count)
            worker_pass_count.inc()
            push_metrics()

        except (KeyboardInterrupt, asyncio.exceptions.CancelledError):
            raise
        except Exception:  # noqa: BLE001
            logger.error("Job loop encountered error", exc_info=True)

        logger.debug("Sleeping for %d", config.WORKER_SLEEP)
        await asyncio.sleep(config.WORKER_SLEEP)


@app.callback()
def init():
    logging.getLogger().setLevel(config.OVERRIDE_LOGGING)
    logger.setLevel(config.OVERRIDE_LOGGING)
    get_log_handlers(logger)


@asynccontextmanager
async def installation_client(installation: int):
    async with aiohttp.ClientSession() as session:
        gh = gh_aiohttp.GitHubAPI(session, __name__)

        token = await get_access_token(gh, installation)

        gh = gh_aiohttp.GitHubAPI(
            session,
            __name__,
            oauth_token=token,
            cache=httpcache,
        )

        yield gh


@app.command()
def worker(dry_run: Optional[bool] = typer.Option(None, "--dry-run/--no-dry-run")):
    runner = make_runner(config.DRY_RUN if dry_run is None else dry_run)
    asyncio.run(job_loop(runner))


@app.command()
def pr(
    repo: str,
    number: int,
    installation: int = typer.Option(config.GITHUB_INSTALLATION_ID),
    dry_run: Optional[bool] = typer.Option(None, "--dry-run/--no-dry-run"),
):
    runner = make_runner(config.DRY_RUN if dry_run is None else dry_run)

    async def handle():
        async with installation_client(installation) as gh:
            api = API(gh, installation)
            repo_url = f"/repos/{repo}"
            repo_config = await get_config_from_repo(api, repo_url)
            if repo_config is None:
                typer.echo(f"No config file found on {repo}")
                raise typer.Exit(1)
            result = await runner.process_pull_request(
                api, repo_url, number, repo_config
            )
        for name, evaluation in result.evaluations.items():
            typer.echo(f"{name}: {evaluation.action.value} ({evaluation.result})")
        if result.stale_comments:
            typer.echo(f"stale comments: {result.stale_comments}")
        if result.error is not None:
            typer.echo(f"error: {result.error}")
            raise typer.Exit(1)

    asyncio.run(handle())


@app.command()
def check_config(path: Path):
    try:
        repo_config = parse_config(path.read_text(), source_url=str(path))
    except InvalidConfig as e:
        typer.echo(f"Invalid config file {e.source_url}:\n{e}")
        raise typer.Exit(1)
    typer.echo(repo_config.model_dump_json(by_alias=True, indent=2))
