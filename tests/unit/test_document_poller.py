import threading

from services.document_poller import DocumentStatusPoller
from tavus_gateway import TavusDocument


def _doc(status):
    return TavusDocument(document_id="d1", document_name="resume.pdf", status=status)


def test_poll_once_hands_snapshot_to_callback():
    seen = []
    poller = DocumentStatusPoller(lambda: [_doc("processing")], seen.append)
    documents = poller.poll_once()
    assert documents == seen[0]
    assert poller.ticks == 1
    assert not poller.running


def test_stops_by_itself_once_settled():
    snapshots = iter([[_doc("processing")], [_doc("processing")], [_doc("ready")]])
    seen = []
    poller = DocumentStatusPoller(lambda: next(snapshots), seen.append, interval_s=0.01, stop_when_settled=True)
    poller.start()
    poller.join(5)
    assert not poller.running
    assert [docs[0].status for docs in seen] == ["processing", "processing", "ready"]


def test_fetch_errors_do_not_stop_polling():
    calls = []
    done = threading.Event()

    def _fetch():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("list failed")
        done.set()
        return [_doc("ready")]

    with DocumentStatusPoller(_fetch, lambda _docs: None, interval_s=0.01) as poller:
        assert done.wait(5)
        assert poller.running
    assert not poller.running
    assert len(calls) >= 2


def test_stop_is_deterministic():
    tick = threading.Event()

    def _on_update(_docs):
        tick.set()

    poller = DocumentStatusPoller(lambda: [], _on_update, interval_s=60)
    poller.start()
    assert tick.wait(5)
    poller.stop(timeout=5)
    assert not poller.running
    assert poller.ticks == 1
