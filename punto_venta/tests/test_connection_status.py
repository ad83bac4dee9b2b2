from punto_venta.services import ConnectionStatus


def test_subscribers_notified_only_on_change():
    status = ConnectionStatus()
    seen = []
    status.subscribe(seen.append)

    assert status.set_online(True) is False
    assert status.set_online(False) is True
    assert status.set_online(False) is False
    assert status.set_online(True) is True
    assert seen == [False, True]


def test_unsubscribe():
    status = ConnectionStatus()
    seen = []
    unsubscribe = status.subscribe(seen.append)
    unsubscribe()
    unsubscribe()
    status.set_online(False)
    assert seen == []
    assert status.is_online is False


def test_failing_subscriber_does_not_block_others():
    status = ConnectionStatus()
    seen = []

    def broken(online):
        raise RuntimeError('boom')

    status.subscribe(broken)
    status.subscribe(seen.append)
    status.set_online(False)
    assert seen == [False]
    assert status.to_dict()['is_online'] is False
