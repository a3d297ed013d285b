import pytest

from batepapo.exceptions import InvalidLimit, ValidationError
from batepapo.store import MESSAGES
from batepapo.visibility import limited_view, parse_limit, take_last, visible_messages


def msg(text, frm='Ana', to='Todos', type='message'):
    return {'from': frm, 'to': to, 'text': text, 'type': type, 'time': '12:00:00'}


BOB_SCENARIO = [
    msg('public', frm='Eve', to='X', type='message'),
    msg('to everyone', frm='Eve', to='Todos', type='status'),
    msg('for bob', frm='Ana', to='Bob', type='private_message'),
    msg('for carl', frm='Dan', to='Carl', type='private_message'),
]


@pytest.mark.parametrize('order', [(0, 1, 2, 3), (3, 2, 1, 0), (2, 3, 0, 1), (1, 3, 2, 0)])
async def test_visible_messages_for_bob(store, order):
    inserted = [BOB_SCENARIO[i] for i in order]
    store.docs(MESSAGES).extend(inserted)

    texts = [m['text'] for m in await visible_messages(store, 'Bob')]

    expected = [m['text'] for m in inserted if m['text'] != 'for carl']
    assert texts == expected
    assert sorted(texts) == ['for bob', 'public', 'to everyone']


async def test_sender_sees_own_private_messages(store):
    store.docs(MESSAGES).extend([
        msg('hidden', frm='Dan', to='Carl', type='private_message'),
        msg('mine', frm='Bob', to='Carl', type='private_message'),
    ])

    assert [m['text'] for m in await visible_messages(store, 'Bob')] == ['mine']


async def test_message_matching_several_rules_appears_once(store):
    store.docs(MESSAGES).append(msg('hi', frm='Bob', to='Todos', type='message'))

    assert len(await visible_messages(store, 'Bob')) == 1


async def test_order_follows_insertion(store):
    store.docs(MESSAGES).extend([msg(str(i)) for i in range(5)])

    assert [m['text'] for m in await visible_messages(store, 'U')] == ['0', '1', '2', '3', '4']


@pytest.mark.parametrize('limit, expected', [
    ('2', ['3', '4']),
    (2, ['3', '4']),
    ('0', ['0', '1', '2', '3', '4']),
    (None, ['0', '1', '2', '3', '4']),
    ('10', ['0', '1', '2', '3', '4']),
])
async def test_limited_view(store, limit, expected):
    store.docs(MESSAGES).extend([msg(str(i)) for i in range(5)])

    assert [m['text'] for m in await limited_view(store, 'U', limit)] == expected


@pytest.mark.parametrize('raw', ['-1', -1, 'abc', '1.5', True, '1_0', '+2', ' 2 ', '２'])
def test_parse_limit_rejects(raw):
    with pytest.raises(InvalidLimit) as exc:
        parse_limit(raw)
    assert isinstance(exc.value, ValidationError)
    assert exc.value.fields == ['limit']


async def test_invalid_limit_rejected_before_reading(store):
    store.fail('find', MESSAGES)

    with pytest.raises(InvalidLimit):
        await limited_view(store, 'U', '-1')


def test_take_last_keeps_order():
    assert take_last([1, 2, 3, 4], 3) == [2, 3, 4]
    assert take_last([1, 2], None) == [1, 2]
