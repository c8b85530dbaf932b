"""Tests for the /api/ai endpoints with a mocked Bedrock model."""
import json

import pytest

from conftest import client_error, last_prompt

FILES = [
    {'key': 'docs/invoice-jan.pdf', 'name': 'invoice-jan.pdf', 'size': 2048,
     'lastModified': '2024-01-31T10:00:00.000Z'},
    {'key': 'docs/notes.txt', 'name': 'notes.txt', 'size': 10},
]


class TestValidation:

    @pytest.mark.parametrize('path,message', [
        ('/api/ai/ask', 'Missing question'),
        ('/api/ai/chat', 'Missing message'),
        ('/api/ai/query', 'Missing query'),
        ('/api/ai/command', 'Missing text'),
        ('/api/ai/filters', 'Missing text'),
    ])
    def test_missing_input_returns_400(self, client, aws_clients, path, message):
        response = client.post(path, json={'files': FILES})

        assert response.status_code == 400
        assert response.get_json() == {'error': message}
        aws_clients.bedrock.converse.assert_not_called()

    def test_blank_question_returns_400(self, client, aws_clients):
        response = client.post('/api/ai/ask', json={'question': '   '})

        assert response.status_code == 400


class TestAsk:

    def test_answers_about_current_folder(self, client, aws_clients, model_reply):
        model_reply('  This folder holds one invoice and some notes.  ')

        response = client.post('/api/ai/ask', json={
            'question': 'What is here?', 'folderPath': 'docs/', 'files': FILES, 'subfolderNames': ['2024']
        })

        assert response.status_code == 200
        assert response.get_json() == {'answer': 'This folder holds one invoice and some notes.'}
        prompt = last_prompt(aws_clients.bedrock)
        assert 'CURRENT FOLDER (the one you are describing): docs' in prompt
        assert '- invoice-jan.pdf (key: docs/invoice-jan.pdf, 2048 bytes, modified: 2024-01-31T10:00:00.000Z)' in prompt
        assert 'SUBFOLDERS in this folder: 2024.' in prompt

    def test_model_error_returns_500(self, client, aws_clients):
        aws_clients.bedrock.converse.side_effect = client_error('ThrottlingException', 'slow down', 'Converse')

        response = client.post('/api/ai/ask', json={'question': 'hi'})

        assert response.status_code == 500
        assert 'rate limit' in response.get_json()['error']


class TestChat:

    def test_returns_filters_and_match(self, client, aws_clients, model_reply):
        model_reply('```json\n' + json.dumps({
            'message': 'Showing PDFs only.',
            'filters': {'fileType': '.PDF', 'dateFrom': None, 'nameContains': 'null'},
            'match': ['docs/invoice-jan.pdf']
        }) + '\n```')

        response = client.post('/api/ai/chat', json={'message': 'only pdfs', 'files': FILES})

        assert response.status_code == 200
        assert response.get_json() == {
            'message': 'Showing PDFs only.',
            'filters': {'fileType': 'pdf'},
            'match': ['docs/invoice-jan.pdf']
        }

    def test_unparseable_reply_uses_fallback(self, client, aws_clients, model_reply):
        model_reply('Sorry, I am not sure.')

        response = client.post('/api/ai/chat', json={'message': 'hello'})

        body = response.get_json()
        assert response.status_code == 200
        assert body['message'].startswith("I couldn't process that.")
        assert body['filters'] is None
        assert body['match'] is None

    def test_lists_whole_bucket_when_credentials_sent(self, client, aws_clients, model_reply):
        model_reply('{"message": "Found it.", "filters": null, "match": null}')
        aws_clients.s3.list_objects_v2.return_value = {
            'IsTruncated': False,
            'Contents': [{'Key': 'archive/2019/old-report.pdf', 'Size': 99}]
        }

        response = client.post('/api/ai/chat', json={
            'message': 'where is the old report?',
            'files': FILES,
            'bucketName': 'test-bucket',
            'credentials': {'accessKeyId': 'key', 'secretAccessKey': 'secret'}
        })

        assert response.status_code == 200
        prompt = last_prompt(aws_clients.bedrock)
        assert 'archive/2019/old-report.pdf' in prompt
        assert 'docs/notes.txt' not in prompt

    def test_bucket_listing_failure_falls_back_to_sent_files(self, client, aws_clients, model_reply):
        model_reply('{"message": "ok", "filters": null, "match": null}')
        aws_clients.s3.list_objects_v2.side_effect = client_error('AccessDenied', 'Access Denied')

        response = client.post('/api/ai/chat', json={
            'message': 'what files?',
            'files': FILES,
            'bucketName': 'test-bucket',
            'credentials': {'accessKeyId': 'key', 'secretAccessKey': 'secret'}
        })

        assert response.status_code == 200
        assert 'docs/notes.txt' in last_prompt(aws_clients.bedrock)

    def test_out_of_range_size_in_filters_is_dropped(self, client, aws_clients, model_reply):
        model_reply('{"message": "Large files.", "filters": {"sizeMinBytes": "1e400"}, "match": null}')

        response = client.post('/api/ai/chat', json={'message': 'huge files', 'files': FILES})

        assert response.status_code == 200
        assert response.get_json() == {'message': 'Large files.', 'filters': None, 'match': None}


class TestQuery:

    def test_splits_answer_and_match(self, client, aws_clients, model_reply):
        model_reply('You have one invoice.\n{"match": ["docs/invoice-jan.pdf"]}')

        response = client.post('/api/ai/query', json={'query': 'invoices', 'files': FILES})

        assert response.get_json() == {'answer': 'You have one invoice.', 'match': ['docs/invoice-jan.pdf']}
        assert 'size: 2048' in last_prompt(aws_clients.bedrock)

    def test_json_only_reply_keeps_raw_text_as_answer(self, client, aws_clients, model_reply):
        model_reply('{"match": []}')

        response = client.post('/api/ai/query', json={'query': 'spreadsheets', 'files': FILES})

        assert response.get_json() == {'answer': '{"match": []}', 'match': []}


class TestReport:

    def test_defaults_to_one_pager_at_root(self, client, aws_clients, model_reply):
        model_reply('A short summary.')

        response = client.post('/api/ai/report', json={'files': FILES})

        assert response.status_code == 200
        assert response.get_json() == {'report': 'A short summary.', 'type': 'one-pager', 'scope': 'root'}
        prompt = last_prompt(aws_clients.bedrock)
        assert 'one-pager' in prompt
        assert 'Bucket root' in prompt
        assert '- invoice-jan.pdf (2.0 KB, 2024-01-31T10:00:00.000Z)' in prompt

    def test_digest_for_folder(self, client, aws_clients, model_reply):
        model_reply('- bullet')

        response = client.post('/api/ai/report', json={
            'type': 'digest', 'folderPath': 'docs/', 'files': [], 'bucketName': 'test-bucket'
        })

        assert response.get_json()['scope'] == 'docs/'
        prompt = last_prompt(aws_clients.bedrock)
        assert 'Weekly digest' in prompt
        assert 'Bucket: test-bucket' in prompt
        assert '(no files)' in prompt


class TestCommand:

    def test_create_folder_intent(self, client, aws_clients, model_reply):
        model_reply('{"action": "create_folder", "name": "invoices"}')

        response = client.post('/api/ai/command', json={'text': 'new folder invoices'})

        assert response.get_json() == {'intent': {'action': 'create_folder', 'name': 'invoices'}}

    @pytest.mark.parametrize('reply', [
        'I have no idea',
        '{"action": "explode"}',
        '{"action": "find"}',
    ])
    def test_unusable_reply_falls_back(self, client, aws_clients, model_reply, reply):
        model_reply(reply)

        response = client.post('/api/ai/command', json={'text': 'do something'})

        intent = response.get_json()['intent']
        assert intent['action'] == 'none'
        assert intent['message'].startswith('Try:')


class TestFilters:

    def test_parses_filters(self, client, aws_clients, model_reply):
        model_reply('{"fileType": "pdf", "dateFrom": null, "dateTo": null, '
                    '"sizeMinBytes": 5242880, "sizeMaxBytes": null, "nameContains": null}')

        response = client.post('/api/ai/filters', json={'text': 'PDFs larger than 5MB'})

        assert response.get_json() == {'filters': {'fileType': 'pdf', 'sizeMinBytes': 5242880}}

    def test_unparseable_reply_gives_empty_filters(self, client, aws_clients, model_reply):
        model_reply('no filters here')

        response = client.post('/api/ai/filters', json={'text': 'whatever'})

        assert response.status_code == 200
        assert response.get_json() == {'filters': {}}

    def test_infinite_size_bound_is_dropped(self, client, aws_clients, model_reply):
        model_reply('{"fileType": "pdf", "sizeMinBytes": 0, "sizeMaxBytes": Infinity}')

        response = client.post('/api/ai/filters', json={'text': 'PDFs of any size'})

        assert response.status_code == 200
        assert response.get_json() == {'filters': {'fileType': 'pdf', 'sizeMinBytes': 0}}


class TestSuggestUpload:

    def test_no_file_names_skips_model(self, client, aws_clients):
        response = client.post('/api/ai/suggest-upload', json={'fileNames': []})

        assert response.status_code == 200
        assert response.get_json() == {'suggestedFolder': '', 'suggestedTags': []}
        aws_clients.bedrock.converse.assert_not_called()

    def test_suggestion_is_clamped(self, client, aws_clients, model_reply):
        model_reply('{"suggestedFolder": "/invoices/2024/", '
                    '"suggestedTags": ["invoice", "2024", "q1", "billing", "pdf", "extra"]}')

        response = client.post('/api/ai/suggest-upload', json={
            'fileNames': ['invoice-2024-01.pdf'], 'existingFolders': ['invoices']
        })

        assert response.get_json() == {
            'suggestedFolder': 'invoices/2024',
            'suggestedTags': ['invoice', '2024', 'q1', 'billing', 'pdf']
        }
        prompt = last_prompt(aws_clients.bedrock)
        assert 'File names: invoice-2024-01.pdf' in prompt
        assert 'Existing folders: invoices' in prompt
