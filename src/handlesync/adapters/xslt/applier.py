"""Embeds a Handle into a datastream by running an XSL transform over it."""

from __future__ import annotations

from functools import cache
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING, Final

from lxml import etree

from handlesync.domain.model import AttachmentResult, Message

if TYPE_CHECKING:
    from handlesync.domain.ports import RepositoryObject

log = getLogger(__name__)

BUNDLED_STYLESHEETS: Final[Path] = Path(__file__).resolve().parent / "stylesheets"
HANDLE_PARAMETER: Final[str] = "handle_value"


class StylesheetNotFoundError(FileNotFoundError):
    """Raised when a transform names neither a file nor a bundled stylesheet."""


_HANDLE_TEXT = etree.XPath("boolean(//text()[normalize-space(.) = $url] | //@*[. = $url])")


@cache
def _compile(path: Path, mtime_ns: int) -> etree.XSLT:  # noqa: ARG001
    # mtime_ns is part of the cache key so an edited stylesheet is recompiled
    return etree.XSLT(etree.parse(str(path)))


def _load(path: Path) -> etree.XSLT:
    return _compile(path, path.stat().st_mtime_ns)


class XsltHandleApplier:
    """``HandleApplier`` that rewrites the datastream with the transform's output.

    ``transform`` is a path to an XSL file, or the file name of a stylesheet shipped
    in ``stylesheets/`` (or in ``stylesheet_dir`` when given). The stylesheet
    receives the Handle URL as the string parameter ``handle_value``.
    """

    def __init__(self, *, stylesheet_dir: Path | None = None) -> None:
        self._stylesheet_dir = stylesheet_dir or BUNDLED_STYLESHEETS

    def resolve(self, transform: str) -> Path:
        candidate = Path(transform).expanduser()
        if candidate.is_file():
            return candidate.resolve()
        bundled = self._stylesheet_dir / transform
        if bundled.is_file():
            return bundled.resolve()
        raise StylesheetNotFoundError(f"No stylesheet found for transform {transform!r}")

    def __call__(
        self,
        obj: RepositoryObject,
        dsid: str,
        transform: str,
        handle_url: str,
    ) -> AttachmentResult:
        datastream = obj[dsid]
        try:
            stylesheet = _load(self.resolve(transform))
            source = etree.fromstring(
                datastream.content, etree.XMLParser(remove_blank_text=True)
            )
            output = stylesheet(source, **{HANDLE_PARAMETER: etree.XSLT.strparam(handle_url)})
        except (OSError, etree.XMLSyntaxError, etree.XSLTError) as exc:
            log.warning("Transform %s failed on %s/%s: %s", transform, obj.pid, dsid, exc)
            return AttachmentResult(
                success=False,
                message=Message.log_error(
                    "Unable to append Handle to @ds datastream for @pid: @error",
                    ds=dsid,
                    pid=obj.pid,
                    error=exc,
                ),
            )

        problem = _missing_handle(output, handle_url)
        if problem is not None:
            log.warning("Transform %s on %s/%s: %s", transform, obj.pid, dsid, problem)
            return AttachmentResult(
                success=False,
                message=Message.log_error(
                    "Unable to append Handle to @ds datastream for @pid: @error",
                    ds=dsid,
                    pid=obj.pid,
                    error=problem,
                ),
            )

        datastream.content = etree.tostring(
            output, xml_declaration=True, encoding="UTF-8", pretty_print=True
        )
        return AttachmentResult(
            success=True,
            message=Message.notice(
                "Appended Handle to @ds datastream for @pid!", ds=dsid, pid=obj.pid
            ),
        )


def _missing_handle(output: etree._XSLTResultTree, handle_url: str) -> str | None:
    if output.getroot() is None:
        return "empty transform output."
    if not _HANDLE_TEXT(output, url=handle_url):
        return "transform output does not contain the Handle."
    return None
