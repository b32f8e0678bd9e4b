def _create(client):
    res = client.post('/api/games/create')
    assert res.status_code == 201
    return res.get_json()


def _to_answer_prompt(clock, code, client):
    state = client.get(f'/api/games/{code}/state').get_json()
    clock.advance(state['remaining_ms'])
    state = client.get(f'/api/games/{code}/state').get_json()
    clock.advance(state['remaining_ms'])
    return client.get(f'/api/games/{code}/state').get_json()


def test_index_and_health(client):
    assert client.get('/').status_code == 200
    res = client.get('/health')
    assert res.get_json() == {'status': 'ok', 'sessions': 0}


def test_create_game_starts_first_round(client, registry):
    data = _create(client)
    assert len(data['game_code']) == 4
    assert data['game_code'] in registry
    state = data['state']
    assert state['state'] == 'showing'
    assert state['score'] == 0
    assert state['current_length'] == 6
    assert len(state['digits']) == 6
    assert state['display'] == f"{state['digits'][:3]} {state['digits'][3:]}"


def test_state_includes_timing(client):
    code = _create(client)['game_code']
    state = client.get(f'/api/games/{code}/state').get_json()
    assert state['timing']['base_duration_ms'] == 2500
    assert state['timing']['pause_ms'] == 500
    assert state['remaining_ms'] == 2500


def test_game_codes_are_case_insensitive(client):
    code = _create(client)['game_code']
    assert client.get(f'/api/games/{code.lower()}/state').status_code == 200


def test_unknown_game_is_404(client):
    res = client.get('/api/games/ZZZZ/state')
    assert res.status_code == 404
    assert res.get_json()['error'] == 'session_not_found'
    assert client.post('/api/games/ZZZZ/answer', json={'answer': '123456'}).status_code == 404
    assert client.delete('/api/games/ZZZZ').status_code == 404


def test_full_round_over_http(client, registry, clock):
    created = _create(client)
    code = created['game_code']
    digits = created['state']['digits']

    state = _to_answer_prompt(clock, code, client)
    assert state['state'] == 'awaiting_answer'
    assert state['digits'] is None

    res = client.post(f'/api/games/{code}/answer', json={'answer': digits})
    assert res.status_code == 200
    body = res.get_json()
    assert body['result']['is_correct'] is True
    assert body['result']['score'] == 1
    assert body['state']['state'] == 'showing_result'

    # Result dwell then a fresh round
    clock.advance(1000)
    state = client.get(f'/api/games/{code}/state').get_json()
    assert state['state'] == 'showing'
    assert state['round'] == 2
    assert state['score'] == 1


def test_wrong_answer_shows_comparison(client, clock):
    created = _create(client)
    code = created['game_code']
    digits = created['state']['digits']
    wrong = ('1' if digits[0] != '1' else '2') + digits[1:]
    _to_answer_prompt(clock, code, client)

    body = client.post(f'/api/games/{code}/answer', json={'answer': wrong}).get_json()
    assert body['result']['is_correct'] is False
    assert body['result']['score'] == 0
    assert body['result']['correct_answer'].replace(' ', '') == digits
    assert body['result']['submitted_answer'].replace(' ', '') == wrong
    result = body['state']['result']
    assert result['correct_answer'].replace(' ', '') == digits
    assert result['submitted_answer'].replace(' ', '') == wrong


def test_invalid_answers_keep_round_open(client, clock):
    code = _create(client)['game_code']
    _to_answer_prompt(clock, code, client)

    res = client.post(f'/api/games/{code}/answer', json={'answer': '1234'})
    assert res.status_code == 400
    assert res.get_json() == {
        'error': 'invalid_length',
        'message': 'Please enter exactly 6 digits',
        'expected_length': 6,
    }

    res = client.post(f'/api/games/{code}/answer', json={'answer': '12ab56'})
    assert res.status_code == 400
    assert res.get_json()['error'] == 'invalid_format'

    res = client.post(f'/api/games/{code}/answer', json={})
    assert res.status_code == 400
    assert res.get_json()['error'] == 'missing_answer'

    state = client.get(f'/api/games/{code}/state').get_json()
    assert state['state'] == 'awaiting_answer'
    assert state['score'] == 0


def test_answer_while_showing_is_conflict(client):
    code = _create(client)['game_code']
    res = client.post(f'/api/games/{code}/answer', json={'answer': '123456'})
    assert res.status_code == 409
    assert res.get_json()['error'] == 'not_accepting_answers'


def test_next_is_ignored_until_result(client, clock):
    created = _create(client)
    code = created['game_code']
    res = client.post(f'/api/games/{code}/next')
    assert res.status_code == 202
    assert res.get_json()['message'] == 'ignored'

    _to_answer_prompt(clock, code, client)
    client.post(f'/api/games/{code}/answer', json={'answer': created['state']['digits']})
    res = client.post(f'/api/games/{code}/next')
    assert res.status_code == 200
    assert res.get_json()['state'] == 'showing'
    assert res.get_json()['round'] == 2


def test_reset_restarts_from_scratch(client, clock):
    created = _create(client)
    code = created['game_code']
    _to_answer_prompt(clock, code, client)
    client.post(f'/api/games/{code}/answer', json={'answer': created['state']['digits']})

    res = client.post(f'/api/games/{code}/reset')
    assert res.status_code == 200
    state = res.get_json()
    assert state['score'] == 0
    assert state['round'] == 1
    assert state['state'] == 'showing'
    assert len(clock.pending()) == 1


def test_delete_ends_game_and_cancels_timers(client, registry, clock):
    code = _create(client)['game_code']
    assert len(clock.pending()) == 1

    res = client.delete(f'/api/games/{code}')
    assert res.status_code == 200
    assert res.get_json() == {'ended': code}
    assert code not in registry
    assert clock.pending() == []
    assert client.get(f'/api/games/{code}/state').status_code == 404


def test_session_limit(client, registry):
    registry.max_sessions = 1
    _create(client)
    res = client.post('/api/games/create')
    assert res.status_code == 503
    assert res.get_json()['error'] == 'too_many_sessions'


def test_next_and_reset_debounce(flask_app, client):
    flask_app.config['CONTROLLER_DEBOUNCE_MS'] = 60_000
    code = _create(client)['game_code']
    assert client.post(f'/api/games/{code}/reset').status_code == 200
    res = client.post(f'/api/games/{code}/reset')
    assert res.status_code == 202
    assert res.get_json()['message'] == 'debounced'
