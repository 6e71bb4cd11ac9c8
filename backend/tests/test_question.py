from trivia.models import Question


def test_set_normalizes_answer_and_keeps_prompt():
    q = Question()
    q.set('  Capital of France? ', '  PARIS ')
    assert q.prompt == '  Capital of France? '
    assert q.answer == 'paris'
    assert q.revealed is False
    assert q.is_set()


def test_check_ignores_case_and_surrounding_whitespace():
    q = Question()
    q.set('Capital of France?', 'paris')
    assert q.check(' Paris ')
    assert q.check('PARIS')
    assert not q.check('Pari')
    assert not q.check('paris france')


def test_check_rejects_empty_guess_or_unset_answer():
    q = Question()
    assert not q.check('anything')
    q.set('2+2', '4')
    assert not q.check('')
    assert not q.check('   ')
    assert not q.check(None)


def test_is_set_requires_prompt_and_answer():
    q = Question()
    assert not q.is_set()
    q.set('   ', '4')
    assert not q.is_set()
    q.set('2+2', '  ')
    assert not q.is_set()


def test_reveal_is_idempotent_and_reset_clears():
    q = Question()
    q.set('2+2', '4')
    q.reveal()
    q.reveal()
    assert q.revealed
    q.reset()
    assert q.prompt == '' and q.answer == '' and not q.revealed
    assert not q.is_set()


def test_public_data_hides_answer_unless_asked():
    q = Question()
    q.set('2+2', '4')
    assert 'answer' not in q.to_dict()
    assert q.to_dict(include_answer=True)['answer'] == '4'
