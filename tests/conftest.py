import pytest

from pipeline_externallinks.config import Config

CREATE_TABLE = [
    b"CREATE TABLE `externallinks` (",
    b"  `el_id` int(10) unsigned NOT NULL AUTO_INCREMENT,",
    b"  `el_to_domain_index` varbinary(255) NOT NULL DEFAULT '',",
    b"  `el_to_path` blob DEFAULT NULL,",
    b"  PRIMARY KEY (`el_id`),",
    b"  KEY `el_to_domain_index` (`el_to_domain_index`(60))",
    b") ENGINE=InnoDB DEFAULT CHARSET=binary;",
]

HEADER = [
    b"-- MySQL dump 10.19  Distrib 10.3.38-MariaDB",
    b"--",
    b"-- Host: db1234    Database: enwiki",
    b"",
    b"/*!40101 SET @OLD_CHARACTER_SET_CLIENT=@@CHARACTER_SET_CLIENT */;",
    b"",
]


def insert(*rows, table=b"externallinks"):
    return b"INSERT INTO `" + table + b"` VALUES " + b",".join(rows) + b";"


def as_lines(*lines):
    """Raw lines as read from a binary file"""
    return [line + b"\n" for line in lines]


@pytest.fixture
def inline_config():
    return Config(num_workers=0)


@pytest.fixture
def parallel_config():
    return Config(num_workers=2, queue_size=4)


@pytest.fixture
def sample_dump():
    """A small dump with three good rows and one row with a NULL path"""
    return as_lines(
        *HEADER,
        *CREATE_TABLE,
        b"/*!40000 ALTER TABLE `externallinks` DISABLE KEYS */;",
        insert(
            b"(1,'https://org.wikipedia.en.','/wiki/Main_Page')",
            b"(2,'http://com.example.','/index.html')",
        ),
        insert(
            b"(3,'https://org.python.docs.','/3/library/re.html')",
            b"(4,'http://org.example.',NULL)",
        ),
        b"/*!40000 ALTER TABLE `externallinks` ENABLE KEYS */;",
        b"-- Dump completed on 2025-11-01  0:00:00",
    )


@pytest.fixture
def create_table():
    return list(CREATE_TABLE)


@pytest.fixture
def make_insert():
    return insert


@pytest.fixture
def make_lines():
    return as_lines
