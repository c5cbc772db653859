"""
Centralized upstream payload fixtures.

Trimmed copies of what each public feed actually returns, shared across the
adapter tests so every test exercises the same realistic shapes.
"""

from __future__ import annotations

URLHAUS_TEXT = """\
################################################################
# abuse.ch URLhaus Database Dump (CSV - online URLs only)      #
################################################################
http://malware-host.example/bins/emotet.dll
http://198.51.100.7/invoice.exe
https://cdn.example.net/payload.zip
"""

OPENPHISH_TEXT = """\
https://paypal-verify.example.com/login
http://secure-update.example.org/office365/
not-a-url
https://random.example.io/path
"""

FEODO_JSON = [
    {
        "ip_address": "203.0.113.10",
        "port": 447,
        "status": "online",
        "as_name": "EVIL-AS",
        "country": "RU",
        "first_seen": "2024-01-01 00:00:00",
        "last_online": "2024-01-02",
        "malware": "QakBot",
    },
    {
        "ip_address": "203.0.113.11",
        "port": 443,
        "status": "offline",
        "country": "NL",
        "malware": "Emotet",
    },
]

DSHIELD_JSON = [
    {"ip": "192.0.2.1", "targetport": 22, "count": 120, "ascountry": "CN"},
    {"ip": "192.0.2.2", "targetport": 3389, "count": 40, "ascountry": "RU"},
    {"ip": "192.0.2.3", "targetport": 9999, "count": 3},
]

SSLBL_CERTS_CSV = """\
# abuse.ch SSLBL SSL Certificate Blacklist (SHA1 Fingerprints)
# Listingdate,SHA1,Listingreason
2024-05-01 10:00:00,aaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa,Dridex C&C
2024-05-01 11:00:00,bbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbb,QakBot C&C
"""

SSLBL_JA3_CSV = """\
# ja3_md5,Firstseen,Lastseen,Listingreason
"1111aaaa2222bbbb3333cccc4444dddd","Tofsee"
"5555eeee6666ffff7777aaaa8888bbbb","Dridex"
"""

TOR_EXIT_TEXT = "\n".join(f"185.220.101.{i}" for i in range(1, 31)) + "\n"

BLOCKLIST_SSH_TEXT = """\
198.51.100.1
198.51.100.2
not.an.ip.address
300.1.1.1
198.51.100.3
"""

HIBP_JSON = [
    {
        "Name": "OldBreach",
        "Title": "Old Breach",
        "Domain": "old.example",
        "BreachDate": "2019-01-01",
        "AddedDate": "2019-02-01T00:00:00Z",
        "PwnCount": 1000,
        "Description": "<p>An <a href='#'>old</a> breach.</p>",
        "DataClasses": ["Email addresses"],
        "IsVerified": True,
        "IsSensitive": False,
    },
    {
        "Name": "NewBreach",
        "Title": "New Breach",
        "Domain": "new.example",
        "BreachDate": "2024-06-01",
        "AddedDate": "2024-07-01T00:00:00Z",
        "PwnCount": 5000,
        "Description": "Fresh.",
        "DataClasses": ["Passwords"],
        "IsVerified": True,
        "IsSensitive": False,
    },
]

SPAMHAUS_DROP_TEXT = """\
; Spamhaus DROP List 2024/07/01 - (c) 2024 The Spamhaus Project
; Last-Modified: Mon, 01 Jul 2024 00:00:00 GMT
1.10.16.0/20 ; SBL256894
1.19.0.0/16 ; SBL434604
2.56.192.0/22 ; SBL459831
"""

SPAMHAUS_EDROP_TEXT = """\
; Spamhaus EDROP List
23.148.0.0/22 ; SBL600001
"""

RANSOMWATCH_JSON = [
    {
        "group_name": "LockBit",
        "post_title": "County Hospital",
        "website": "countyhospital.us",
        "discovered": "2024-07-01 10:00:00",
        "published": "2024-06-30 09:00:00",
    },
    {
        "group_name": "Akira",
        "post_title": "Acme Widgets",
        "country": "DE",
    },
]

GREYNOISE_JSON = {
    "stats": {
        "total_ips": 4242,
        "classifications": ["malicious", "benign"],
        "top_ports": [{"port": 23}, {"port": 445}],
        "top_tags": [{"tag": "Mirai"}],
    }
}
