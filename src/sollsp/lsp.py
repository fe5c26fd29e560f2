"""Solidity Language Server: pygls-based LSP for .sol files.

Publishes compiler diagnostics and answers hovers from the source index.
Each request recompiles the file; the server keeps no per-document state.
"""

from __future__ import annotations

import asyncio
import logging

from lsprotocol import types as lsp
from pygls.lsp.server import LanguageServer

from sollsp import __version__
from sollsp.config import SolLspConfig
from sollsp.session import SessionDriver, unresolved_hover, uri_to_path

logger = logging.getLogger("sollsp.lsp")


class SolidityLanguageServer(LanguageServer):
    """Language server holding the (stateless) session driver."""

    def __init__(self, driver: SessionDriver, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.driver = driver


server = SolidityLanguageServer(
    SessionDriver.from_config(SolLspConfig()),
    "sollsp", __version__,
    text_document_sync_kind=lsp.TextDocumentSyncKind.Full,
)


def _log(message: str) -> None:
    logger.info(message)
    server.window_log_message(lsp.LogMessageParams(type=lsp.MessageType.Info, message=message))


def _buffer_text(uri: str) -> str | None:
    """Editor text for *uri* when configured to compile unsaved buffers."""
    if not server.driver.config.server.use_editor_buffer:
        return None
    return server.workspace.get_text_document(uri).source


async def _publish(uri: str, overlay: str | None) -> None:
    path = uri_to_path(uri)
    if path is None:
        logger.info("not publishing diagnostics for non-file uri %s", uri)
        return

    _log(uri)
    diagnostics = await asyncio.to_thread(server.driver.diagnostics, path, overlay)
    server.text_document_publish_diagnostics(lsp.PublishDiagnosticsParams(
        uri=uri,
        diagnostics=diagnostics,
    ))


# ── LSP Feature Handlers ─────────────────────────────────────────


@server.feature(lsp.INITIALIZED)
def initialized(params: lsp.InitializedParams) -> None:
    _log("server initialized!")


@server.feature(lsp.WORKSPACE_DID_CHANGE_WORKSPACE_FOLDERS)
def did_change_workspace_folders(params: lsp.DidChangeWorkspaceFoldersParams) -> None:
    _log("workspace folders changed!")


@server.feature(lsp.WORKSPACE_DID_CHANGE_CONFIGURATION)
def did_change_configuration(params: lsp.DidChangeConfigurationParams) -> None:
    _log("configuration changed!")


@server.feature(lsp.WORKSPACE_DID_CHANGE_WATCHED_FILES)
def did_change_watched_files(params: lsp.DidChangeWatchedFilesParams) -> None:
    _log("watched files have changed!")


@server.feature(lsp.TEXT_DOCUMENT_DID_OPEN)
async def did_open(params: lsp.DidOpenTextDocumentParams) -> None:
    _log("file opened!")
    overlay = params.text_document.text if server.driver.config.server.use_editor_buffer else None
    await _publish(params.text_document.uri, overlay)


@server.feature(lsp.TEXT_DOCUMENT_DID_CHANGE)
async def did_change(params: lsp.DidChangeTextDocumentParams) -> None:
    _log("file changed!")
    overlay = None
    if server.driver.config.server.use_editor_buffer and params.content_changes:
        # Full sync, take the last content change
        overlay = params.content_changes[-1].text
    await _publish(params.text_document.uri, overlay)


@server.feature(lsp.TEXT_DOCUMENT_DID_SAVE)
async def did_save(params: lsp.DidSaveTextDocumentParams) -> None:
    _log("file saved!")
    await _publish(params.text_document.uri, None)


@server.feature(lsp.TEXT_DOCUMENT_DID_CLOSE)
def did_close(params: lsp.DidCloseTextDocumentParams) -> None:
    _log("file closed!")


@server.feature(lsp.TEXT_DOCUMENT_HOVER)
async def hover(params: lsp.HoverParams) -> lsp.Hover:
    uri = params.text_document.uri
    path = uri_to_path(uri)
    if path is None:
        return unresolved_hover()

    return await asyncio.to_thread(
        server.driver.hover,
        path,
        params.position.line,
        params.position.character,
        _buffer_text(uri),
    )


@server.feature(
    lsp.TEXT_DOCUMENT_COMPLETION,
    lsp.CompletionOptions(resolve_provider=False, trigger_characters=["."]),
)
def completion(params: lsp.CompletionParams) -> list[lsp.CompletionItem]:
    return [
        lsp.CompletionItem(label="Hello", detail="Some detail"),
        lsp.CompletionItem(label="Bye", detail="More detail"),
    ]


# ── Entry point ──────────────────────────────────────────────────


def main(config: SolLspConfig | None = None, *, tcp: tuple[str, int] | None = None) -> None:
    """Start the Solidity language server on stdio, or TCP if given."""
    if config is not None:
        server.driver = SessionDriver.from_config(config)
    if tcp is not None:
        server.start_tcp(*tcp)
    else:
        server.start_io()
