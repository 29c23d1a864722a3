import io
import json
import os
import tempfile
import time
import unittest
from unittest import mock

from statementledger.web import cleanup_old_downloads, create_app

from tests.samples import SAMPLE_PAGES, make_pdf


class WebAppTest(unittest.TestCase):
  def setUp(self):
    self.tmp = tempfile.TemporaryDirectory()
    self.addCleanup(self.tmp.cleanup)
    self.upload_dir = os.path.join(self.tmp.name, 'uploads')
    self.download_dir = os.path.join(self.tmp.name, 'downloads')
    self.app = create_app({
      'TESTING': True,
      'UPLOAD_FOLDER': self.upload_dir,
      'DOWNLOAD_FOLDER': self.download_dir,
    })
    self.client = self.app.test_client()

  def _post(self, url, content, filename='statement.pdf', **form):
    form['file'] = (io.BytesIO(content), filename)
    return self.client.post(url, data=form, content_type='multipart/form-data')

  def test_health(self):
    resp = self.client.get('/test')
    self.assertEqual(resp.status_code, 200)
    self.assertEqual(resp.get_json(), {'message': 'Server is running'})

  def test_preview(self):
    resp = self._post('/preview', make_pdf(SAMPLE_PAGES), format='csv')
    self.assertEqual(resp.status_code, 200)
    body = resp.get_json()
    self.assertTrue(body['success'])
    self.assertEqual(len(body['data']['transactions']), 4)
    self.assertEqual(body['data']['transactions'][0]['moneyOut'], '25.00')
    self.assertEqual(body['data']['metadata']['totalDebits'], '35.50')
    self.assertTrue(body['downloadUrl'].endswith('.csv'))
    self.assertEqual(os.listdir(self.upload_dir), [])

    download = self.client.get(body['downloadUrl'])
    self.assertEqual(download.status_code, 200)
    self.assertIn(b'Direct Debit to Acme', download.data)
    download.close()

  def test_convert_defaults_to_xlsx(self):
    resp = self._post('/convert', make_pdf(SAMPLE_PAGES))
    self.assertEqual(resp.status_code, 200)
    body = resp.get_json()
    self.assertNotIn('data', body)
    self.assertTrue(body['downloadUrl'].endswith('.xlsx'))
    self.assertEqual(len(os.listdir(self.download_dir)), 1)

  def test_missing_file(self):
    resp = self.client.post('/preview')
    self.assertEqual(resp.status_code, 400)
    self.assertEqual(resp.get_json(), {'success': False, 'error': 'No file uploaded'})

  def test_rejects_non_pdf(self):
    resp = self._post('/preview', b'hello', filename='notes.txt')
    self.assertEqual(resp.status_code, 400)
    self.assertIn('Only PDF files are allowed', resp.get_json()['error'])

  def test_rejects_unknown_format(self):
    resp = self._post('/preview', make_pdf(SAMPLE_PAGES), format='ods')
    self.assertEqual(resp.status_code, 400)

  def test_pdf_without_text(self):
    resp = self._post('/preview', make_pdf([]))
    self.assertEqual(resp.status_code, 422)
    self.assertIn('no extractable text', resp.get_json()['error'])
    self.assertEqual(os.listdir(self.upload_dir), [])

  def test_pdf_without_transactions(self):
    resp = self._post('/preview', make_pdf([['Welcome to your statement', 'Thank you']]))
    self.assertEqual(resp.status_code, 422)
    self.assertIn('No transactions found', resp.get_json()['error'])

  def test_too_large(self):
    self.app.config['MAX_CONTENT_LENGTH'] = 100
    resp = self._post('/preview', b'%PDF' + b'0' * 1000)
    self.assertEqual(resp.status_code, 413)
    self.assertFalse(resp.get_json()['success'])

  def test_rules_path_read_when_app_created(self):
    rules_path = os.path.join(self.tmp.name, 'rules.json')
    with open(rules_path, 'w', encoding='utf-8') as f:
      json.dump({'money_in_patterns': ['interest paid']}, f)

    with mock.patch.dict(os.environ, {'STATEMENTLEDGER_RULES': rules_path}):
      app = create_app({'UPLOAD_FOLDER': self.upload_dir, 'DOWNLOAD_FOLDER': self.download_dir})
    self.assertEqual(app.config['LEDGER_RULES_PATH'], rules_path)
    rules = app.extensions['statement_converter'].rules
    self.assertEqual(rules.money_in_patterns[-1], 'interest paid')

  def test_config_overrides_environment(self):
    with mock.patch.dict(os.environ, {'STATEMENTLEDGER_RULES': os.path.join(self.tmp.name, 'missing.json')}):
      app = create_app({
        'UPLOAD_FOLDER': self.upload_dir,
        'DOWNLOAD_FOLDER': self.download_dir,
        'LEDGER_RULES_PATH': None,
      })
    self.assertIsNone(app.config['LEDGER_RULES_PATH'])


class CleanupTest(unittest.TestCase):
  def test_removes_only_expired_files(self):
    with tempfile.TemporaryDirectory() as tmp:
      old = os.path.join(tmp, 'old.csv')
      new = os.path.join(tmp, 'new.csv')
      for path in (old, new):
        with open(path, 'w') as f:
          f.write('x')
      stamp = time.time() - 3 * 60 * 60
      os.utime(old, (stamp, stamp))

      self.assertEqual(cleanup_old_downloads(tmp, 2 * 60 * 60), 1)
      self.assertEqual(os.listdir(tmp), ['new.csv'])


if __name__ == '__main__':
  unittest.main()
